"""HSMS: health and safety management backend."""
