# constants.py
"""
Application-level constants.

These values are static and do not change between runs. Anything that a
user is expected to tweak lives in `config.json` or in the region settings
file instead.
"""

# Visualization settings
FPS = 60
BACKGROUND_COLOR = (0, 0, 0)
DEFAULT_WINDOW_SIZE = (1080, 1080)
WINDOW_CAPTION = "Particle Regions"

# Maximum number of regions in one configuration snapshot.
MAX_REGIONS = 16

# --- Region Settings Defaults ---
# Used whenever a settings field is missing or malformed.
DEFAULT_VISIBLE = False
DEFAULT_TOP_LEFT = (0.0, 0.0)
DEFAULT_SIZE = (500.0, 500.0)
DEFAULT_RADIUS = 1.0
DEFAULT_COUNT = 1000
DEFAULT_MOTION = "random-walk"
DEFAULT_DIRECTION = (1.0, 0.0)
DEFAULT_COLOR = (255, 255, 255, 255)  # Opaque white
DEFAULT_TRAIL = 50.0

# Ranges the settings fields are clamped into.
MAX_COUNT = 9999
TRAIL_RANGE = (0.0, 100.0)
DIRECTION_RANGE = (-5.0, 5.0)

# --- Trail Effect ---
# Overlay opacity is exp(-trail / TRAIL_FALLOFF). Lower trail is a shorter tail.
TRAIL_FALLOFF = 20.0

# --- Noise ---
# Student's t degrees of freedom. Low values give fat tails.
STUDENT_T_DOF = 1.25
# Normalisation constant for 2D simplex noise.
SIMPLEX_SCALE = 70.0
PERMUTATION_SIZE = 256

# --- Motion Rules ---
RANDOM_WALK_STEP = 1.5
SINUSOID_PERIOD = 100.0

FLOW_A_SCALE = 0.02
FLOW_A_MAGNITUDE = 1.5
# Offsets decorrelating the y channel from the x channel of field A.
FLOW_A_OFFSET = (3.117, 2.713)
FLOW_A_JUMP_PROBABILITY = 0.1
# Jumps are uniform in [-JUMP_SIZE / 2, JUMP_SIZE / 2] on each axis.
FLOW_A_JUMP_SIZE = 40.0

FLOW_B_SCALE = 0.02
FLOW_B_TIME_SCALE = 49.37
# Half-width of the uniform jitter added to the time axis of field B.
FLOW_B_TIME_JITTER = 0.01
