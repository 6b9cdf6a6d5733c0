"""Audiences app package.

Named user groups with at most two levels (parent and child), their
memberships, and the resolver that turns audience ids into the set of
users a booking affects.
"""
