__version__ = "0.1.0"
__commit__ = "none"
