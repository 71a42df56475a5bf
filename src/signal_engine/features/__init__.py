"""
Features Module
===============

Bounded context for the product feature catalog and group-to-feature mapping.
"""
