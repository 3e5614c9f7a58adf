# config.py
import os

RANDOM_STATE = 42
VERBOSE = True

LINALG_PROVIDER = 'numpy'

PCA_N_COMPONENTS = None
LDA_TRUNCATE = True
ICA_N_COMPONENTS = None
ICA_MAX_ITER = 1000

DEFAULT_DISTANCE = 'l2'

GRAYSCALE_WEIGHTS = (0.299, 0.587, 0.114)
IMAGE_EXTENSIONS = ('.pgm', '.ppm', '.png', '.jpg', '.jpeg', '.bmp')

MIN_FACES_PER_PERSON = 40
RESIZE_FACTOR = 0.4

CV_START = 1
CV_END = 10

PLOT_STYLE = 'seaborn-v0_8-whitegrid'
PLOT_DPI = 150
PLOT_FIGSIZE_MEDIUM = (12, 8)
PLOT_COLORMAP = 'viridis'

N_EIGENFACES_DISPLAY = 12

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_PATH = os.path.join(BASE_DIR, "data")
MODELS_PATH = os.path.join(BASE_DIR, "results", "models")
OUTPUT_PATH = os.path.join(BASE_DIR, "results", "figures")
METRICS_PATH = os.path.join(BASE_DIR, "results", "metrics")

for path in [DATA_PATH, MODELS_PATH, OUTPUT_PATH, METRICS_PATH]:
    os.makedirs(path, exist_ok=True)

LOG_FILE = os.path.join(BASE_DIR, "results", "experiment.log")

def get_config_summary():
    return {
        'Linear Algebra': {
            'Provider': LINALG_PROVIDER
        },
        'PCA': {
            'Components': PCA_N_COMPONENTS or 'n - 1'
        },
        'LDA': {
            'Truncate (n - c, c - 1)': LDA_TRUNCATE
        },
        'ICA': {
            'Components': ICA_N_COMPONENTS or 'all PCA',
            'Max Iterations': ICA_MAX_ITER,
            'Random State': RANDOM_STATE
        },
        'Recognition': {
            'Distance': DEFAULT_DISTANCE,
            'CV Range': f"[{CV_START}, {CV_END}]"
        }
    }

def print_config():
    print("PROJECT CONFIGURATION")
    summary = get_config_summary()
    for section, params in summary.items():
        print(f"\n{section}:")
        for key, value in params.items():
            print(f"  {key}: {value}")
