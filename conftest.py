collect_ignore = ["setup.py"]

pytest_plugins = ['ircwire.fixtures']
