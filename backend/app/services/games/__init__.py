"""Game core: tiles, dice turns, turn resolution and the match controller.

Nothing in here touches Flask or a socket. Socket handlers and HTTP routes
go through the session directory, which serializes access per room and
hands finished-match records to the history sink.
"""
