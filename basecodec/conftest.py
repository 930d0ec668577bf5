# This file is used to configure the behavior of pytest, adding the versions
# of the packages we depend on to the header of the test report.
import os

try:
    from pytest_astropy_header.display import (PYTEST_HEADER_MODULES,
                                               TESTED_VERSIONS)
except ImportError:
    pass
else:
    def pytest_configure(config):

        config.option.astropy_header = True

        PYTEST_HEADER_MODULES.clear()
        PYTEST_HEADER_MODULES['Numpy'] = 'numpy'
        PYTEST_HEADER_MODULES['Astropy'] = 'astropy'
        PYTEST_HEADER_MODULES['entrypoints'] = 'entrypoints'

        from . import __version__ as version
        if not version:  # Can happen in source checkout.
            version = 'from source'

        packagename = os.path.basename(os.path.dirname(__file__))
        TESTED_VERSIONS[packagename] = version
