__ALL__ = [
    "PROJECT_ROOT",
    "DATA_DIR",
    "PROCESSED_DATA_DIR",
    "LOG_DIR",
    "REPORTS_DIR",
    "SCORED_TEST_FILE",
    "THRESHOLD_RESULTS_FILE",
]

from pathlib import Path


# 1. Get the directory of the current file
CONFIG_FILE_DIR = Path(__file__).resolve()

# 2. The project root is one level above the package
PROJECT_ROOT = CONFIG_FILE_DIR.parent.parent

LOG_DIR = PROJECT_ROOT / "logs"
REPORTS_DIR = PROJECT_ROOT / "reports"

# 3. Define all data paths relative to the Project Root
DATA_DIR = PROJECT_ROOT / "data"
PROCESSED_DATA_DIR = DATA_DIR / "processed"

# held-out partition, already filtered to Fully Paid vs Charged Off/Default
SCORED_TEST_FILE = PROCESSED_DATA_DIR / "test_scored.csv"

THRESHOLD_RESULTS_FILE = REPORTS_DIR / "threshold_results.csv"
