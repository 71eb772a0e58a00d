"""
Playground service: compile and explain-code proxies.
"""
