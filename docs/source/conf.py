# Sphinx configuration for the driver attention and conflict approach docs.
#
# Build with:  sphinx-build -b html docs/source docs/build

import os
import sys
import sphinx_rtd_dark_mode

# conf.py lives in docs/source; the packages live at the project root
sys.path.insert(0, os.path.abspath("../.."))

project = 'Driver Attention'
copyright = '2026, Driver Attention contributors'
author = 'Driver Attention contributors'
release = '0.1'

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",   # numpy style docstrings
    "sphinx.ext.viewcode",
    "sphinx_rtd_dark_mode"
]

napoleon_numpy_docstring = True
napoleon_google_docstring = False
autodoc_member_order = "bysource"

templates_path = ['_templates']
exclude_patterns = []

# -- Options for HTML output -------------------------------------------------

html_theme = "sphinx_rtd_theme"
default_dark_mode = True
html_static_path = ['_static']
