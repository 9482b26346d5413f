"""drama-engine: prose → multi-episode short-drama scripts."""

__version__ = "0.1.0"
