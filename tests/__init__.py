# Tests for Zeno Simulator
#
# Test organization mirrors source structure:
#   - test_core/: operators, suppliers and the master equation solvers
#   - test_zeno/: cavity-ensemble model, regime simulations and plots
#
# Running tests:
#   pytest tests/
#   pytest tests/test_core/ -v
#   pytest tests/ -k "zeno"
