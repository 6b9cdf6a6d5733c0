"""
Shared Kernel

Base classes, value objects, the error taxonomy and the transaction and
messaging infrastructure shared by every scheduling context.
"""
