# --- Reproducibility ---
RANDOM_STATE = 42

import numpy as np
import pandas as pd

def setup():
    np.random.seed(RANDOM_STATE)
    pd.set_option('display.max_columns', 50)
    pd.set_option('display.width', 160)
    pd.set_option('display.float_format', '{:,.4f}'.format)
