"""ThesisHub - academic project sharing and supervision backend"""

__version__ = "1.0.0"
