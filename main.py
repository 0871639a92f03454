# main.py
"""
Main entry point for the particle regions application.

This script orchestrates the entire lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the window and builds the simulation driver.
4. Loads the region settings file and watches it for changes.
5. Runs the frame loop until the window is closed.
6. Handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config
import cProfile
import pstats
import io


def main():
    """
    The main function to run the application.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Particle Regions Starting ---")

    sim_params = config['simulation']
    run_params = config['run_control']
    vis_params = config['visualization']

    from driver import FrameScheduler, SimulationDriver
    from noise import FieldSources
    from settings import SettingsWatcher, load_settings
    from visualization import Visualizer

    # --- Component Initialization ---
    visualizer = Visualizer(vis_params)
    sources = FieldSources.from_seed(sim_params['seed'], sim_params['degrees_of_freedom'])
    scheduler = FrameScheduler()
    driver = SimulationDriver(visualizer.screen, scheduler, sources)

    settings_file = sim_params['settings_file']
    try:
        driver.submit(load_settings(settings_file))
    except (OSError, ValueError) as e:
        logging.warning(f"No initial settings applied ({e}). Waiting for {settings_file} to change.")

    watcher = SettingsWatcher(settings_file, driver.submit, sim_params['watch_interval'])
    watcher.start()

    profiler = cProfile.Profile() if run_params['profile'] else None

    log_throttle = max(1, int(run_params['log_throttle_frames']))
    max_frames = int(run_params['max_frames'])

    running = True
    frame_num = 0

    if profiler:
        profiler.enable()
    try:
        while running:
            if not visualizer.pump_events():
                break

            # Snapshots are only applied here, between two frames.
            driver.apply_pending()
            scheduler.run_frame()
            visualizer.present()
            frame_num += 1

            # Hot loops must throttle logs
            if frame_num % log_throttle == 0:
                logging.info(f"Frame {frame_num} | {visualizer.current_fps():.1f} fps")
                logging.debug(
                    f"Frame {frame_num} | {len(driver.regions)} regions, "
                    f"{driver.particle_count()} particles, driver {driver.state.value}"
                )

            if max_frames and frame_num >= max_frames:
                logging.info(f"Reached max_frames ({max_frames}). Stopping.")
                running = False
    finally:
        if profiler:
            profiler.disable()
        watcher.stop()
        driver.close()
        visualizer.close()

    logging.info("Frame loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Regions Shutting Down ---")


if __name__ == "__main__":
    main()
