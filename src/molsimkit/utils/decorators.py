"""
Functional Decorators for molsimkit

Generic decorators that remove the boilerplate of applying single-structure
functions to stacks of frames.

Key decorators:
- @per_frame: Apply a single-frame function to every frame of a trajectory
"""

import numpy as np
from functools import wraps
from typing import Callable


def per_frame(frame_axis: int = 0):
    """
    Decorator to vectorize single-frame functions over trajectories.

    The first argument of the decorated function becomes a stack of frames;
    the function is called once per frame with the remaining arguments passed
    through unchanged, and the results are stacked along a new first axis.

    Args:
        frame_axis: Axis of the first argument indexing frames (default: 0)

    Returns:
        Decorated function that works on trajectories

    Examples:
        >>> @per_frame()
        ... def radius(positions, center):
        ...     return np.sqrt(np.mean(np.sum((positions - center)**2, axis=1)))
        >>>
        >>> traj = np.random.rand(100, 50, 3)  # 100 frames, 50 atoms
        >>> radius(traj, np.zeros(3)).shape
        (100,)

    Notes:
        - Frames are evaluated in order; the first failing frame raises
        - Scalar results stack to (n_frames,), array results to
          (n_frames, *result.shape)
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(frames, *args, **kwargs):
            frames = np.asarray(frames, dtype=np.float64)

            if frames.ndim < 2:
                raise ValueError(
                    f"{func.__name__} expects a stack of frames, got shape {frames.shape}"
                )

            n_frames = frames.shape[frame_axis]
            results = [
                func(np.take(frames, i, axis=frame_axis), *args, **kwargs)
                for i in range(n_frames)
            ]

            return np.array(results)

        return wrapper
    return decorator


__all__ = [
    'per_frame',
]
