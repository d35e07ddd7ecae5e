"""
Request helpers shared by the API apps.
"""


def client_ip(request):
    """Client address; first hop of X-Forwarded-For when behind a proxy."""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return request.META.get('REMOTE_ADDR')
