"""Shift Coverage package.

Organized by feature modules (timeclock, missed, coverage, ...) with a thin
Flask controller layer over service/repository layers.
"""
