import os

# Headless backend for the chart tests
os.environ.setdefault("MPLBACKEND", "Agg")
