"""
Helpers for testing code built on kconverge
"""
