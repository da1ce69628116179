"""
Authentication module for the Askfield accounts service.

This module provides authentication and authorization functionality including:
- Two-stage registration (signup, then profile completion)
- Email verification with expiring one-time tokens
- Session token authentication
- Role-based access control
"""
