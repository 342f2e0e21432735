"""dappreg test suite."""
