"""HTTP routers mounted by :mod:`leadqueue.main`."""
