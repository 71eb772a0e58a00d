"""
Playground Service package for Zest Access.

Thin proxies that keep third-party credentials on the server:

- app.compiler: forwards Java/C code to the code execution API.
- app.explain: builds the tutoring prompt and calls the generative model.
- app.main: Application entrypoint that wires routes and lifecycle.
"""
