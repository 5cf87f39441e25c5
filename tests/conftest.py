# tests/conftest.py
# Make the src/ layout importable without an editable install.
import os, sys

SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, "src"))
if SRC not in sys.path:
    sys.path.insert(0, SRC)
