"""
Map surfaces: the narrow renderer interface plus an in-process style surface and a recording double.
"""
