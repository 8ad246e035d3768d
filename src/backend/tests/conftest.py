import os
import sys


# `common.form_rules` and `api.forms` are imported from `src/backend`, also when
# pytest runs from the repository root without an editable install.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)
