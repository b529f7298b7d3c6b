import os

# No simulated provider latency under test; must be set before safescan is imported.
os.environ.setdefault("SAFESCAN_SIMULATE_LATENCY", "0")
