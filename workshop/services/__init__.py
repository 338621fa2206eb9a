"""
Core operations. Each takes the caller's ``RequestContext`` explicitly.
"""
