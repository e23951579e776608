#!/usr/bin/env python
import sys
import os, os.path
import json

from setuptools import setup
from setuptools.command.build import build

#########################################################
# SpikeGen global configurations (during installation)
#########################################################
config_folder = os.path.expanduser('~/.config/SpikeGen')
config_file = config_folder + '/spikegen.json'

def create_config():
    """ Creates config file and check for typical configurations. """

    # Generate a default setting files
    settings = {}

    # Single-thread settings
    if sys.platform == "darwin":   # mac os
        settings['cpu'] = {
            'compiler': "clang++",
            'flags': "-O3 -march=native",
        }
    else:
        settings['cpu'] = {
            'compiler': "g++",
            'flags': "-O3 -march=native",
        }

    # Cluster settings
    settings['mpi'] = {
        'compiler': "mpicxx",
        'flags': "-O3 -march=native",
    }

    # If the config file does not exist, create it
    if not os.path.exists(config_file):
        print('Creating the configuration file in ~/.config/SpikeGen/spikegen.json')
        if not os.path.exists(config_folder):
            os.makedirs(config_folder)

        with open(config_file, 'w') as f:
            json.dump(settings, f, indent=4)

        return settings

    # The config file exists, make sure it has all the required fields
    update_required = False
    with open(config_file, 'r') as f:
        local_settings = json.load(f)

    for paradigm in settings.keys():
        if not paradigm in local_settings.keys():
            local_settings[paradigm] = settings[paradigm]
            update_required = True
            continue

        for key in settings[paradigm].keys():
            if not key in local_settings[paradigm].keys():
                local_settings[paradigm][key] = settings[paradigm][key]
                update_required = True
            elif local_settings[paradigm][key] != settings[paradigm][key]:
                print("HINT - field [" + paradigm + "," + key + "]: your spikegen.json uses", local_settings[paradigm][key], "instead of", settings[paradigm][key])

    if update_required:
        print('Updating the configuration file in ~/.config/SpikeGen/spikegen.json')
        with open(config_file, 'w') as f:
            json.dump(local_settings, f, indent=4)

    return local_settings

################################################
# Perform the installation
################################################
class CustomizedBuild(build):
    """
    Customization of the build process.
    """

    def run(self):
        """
        Extend the default build step
        """
        print("Installing SpikeGen ...")
        print("\tPython", "%(major)s.%(minor)s" % {'major': sys.version_info[0], 'minor': sys.version_info[1]}, "(", sys.executable, ')')

        print("Check spikegen.json")
        create_config()

        build.run(self)     # NEVER call super, it breaks everything!

# The metadata is contained in pyproject.toml
setup(
    cmdclass={"build": CustomizedBuild}
)
