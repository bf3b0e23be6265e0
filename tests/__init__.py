"""
Test suite for the Healthcare Portal.

Unit tests for the scheduling core and integration tests for the API.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
