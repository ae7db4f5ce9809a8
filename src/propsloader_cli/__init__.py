"""propsloader command line interface."""
