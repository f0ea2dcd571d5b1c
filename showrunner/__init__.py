"""AI showrunner: story, script and pre-production generation for scripted video series"""

__version__ = "1.0.0"
