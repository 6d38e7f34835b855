"""Page state layer.

Pure state machines for the install lifecycle and the notification
permission prompt. Controllers own the side effects; reducers here only
map ``(state, event)`` to the next state.
"""
