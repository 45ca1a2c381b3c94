"""Translation catalog synchronizer.

Reconciles a translation spreadsheet with per-locale JSON/YAML catalogs:
base locale discovery, spreadsheet key derivation, and an auditable
diff/merge with explicit override decisions.
"""

__version__ = "0.1.0"
