"""
Quiz delivery and statistics services
"""
