"""
Convo API package.

The application lives in ``api.app``; import it from there so that
modules can depend on ``api.dependencies`` without loading every router.
"""
