"""
Chicago domestic-violence rate report pipelines.
"""
