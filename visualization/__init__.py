"""
visualization package

Matplotlib renderers, frame presenters and the live WebSocket dashboard
server for the ripple grid.
"""
