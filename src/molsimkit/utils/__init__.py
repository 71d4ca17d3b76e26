from .decorators import per_frame


__all__ = [
    'per_frame',
]
