"""Single-pass diagnostic collector for a service mesh control plane."""

__version__ = "0.1.0"
