"""
Healthcare Portal

FastAPI service where patients and providers register, discover open
appointment slots, book, cancel and track appointments through their
status lifecycle.
"""

__version__ = "1.0.0"
