"""
Askfield accounts service.

Registration, email verification, login and profile completion for
contributor and participant accounts.
"""
__version__ = "1.0.0"
