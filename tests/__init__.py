"""
Test suite for the Clinic Scheduling API.

Unit tests for the calendar and availability rules, service tests for
booking and cancellation, and API tests through the FastAPI TestClient.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
