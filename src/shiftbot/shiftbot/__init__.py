"""Shiftbot package.

Shift and leave-of-absence tracking for chat-platform guilds, organized by
feature modules (shifts, loa, audit, ...) with a thin Flask interaction
controller on top of service/repository layers.
"""
