"""
Helpers for turning DRF serializer errors into the API's ``{"error": ...}`` shape.
"""
from rest_framework import exceptions
from rest_framework.views import exception_handler


def error_messages(errors):
    """Flatten nested serializer errors into a list of messages, in field order."""
    if isinstance(errors, dict):
        messages = []
        for value in errors.values():
            messages.extend(error_messages(value))
        return messages
    if isinstance(errors, (list, tuple)):
        messages = []
        for value in errors:
            messages.extend(error_messages(value))
        return messages
    return [str(errors)]


def first_error_message(errors, default='Invalid request'):
    messages = error_messages(errors)
    return messages[0] if messages else default


def api_exception_handler(exc, context):
    """
    DRF exception handler rendering framework errors as ``{"error": message}``.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        message = 'Unauthorized'
    else:
        message = first_error_message(response.data)
    response.data = {'error': message}
    return response
