"""
Quiz sessions and quiz statistics for the rules of Ultimate
"""
__version__ = "1.0.0"
