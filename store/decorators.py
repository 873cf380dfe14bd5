from functools import wraps

from django.shortcuts import redirect


def admin_required(view_func):
    """Send anyone who is not an admin back to the storefront."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        user = request.user
        if user.is_authenticated and user.is_admin:
            return view_func(request, *args, **kwargs)
        return redirect('home')
    return _wrapped
