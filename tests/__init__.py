#!/usr/bin/env python3
"""
Test Suite for the Port Weather Monitor

This package contains tests for all components of the port weather
prediction engine.

Test Structure:
- Unit tests for feature extraction, estimators and classifiers
- Forecasting tests for the ARIMA/SARIMA forecaster
- Utility tests for parsing, logging and configuration
- CLI tests driving the click commands end to end

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Test configuration
TEST_CONFIG = {
    'logging': {
        'level': 'WARNING',  # Reduce log noise during tests
        'console_logging': False,
        'file_logging': False,
    },
    'prediction': {
        'jitter_enabled': False,  # Deterministic predictions
    },
}
