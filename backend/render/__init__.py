"""
Report markers on the map: clustered source, layers, pin images and tap resolution.
"""
