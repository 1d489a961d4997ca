"""
Buffers holding captures between the trigger decision and dispatch.
"""

from framekeep.buffers.window_buffer import DispatchQueue, WindowBuffer

__all__ = ["DispatchQueue", "WindowBuffer"]
