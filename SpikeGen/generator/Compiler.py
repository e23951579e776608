"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

import os, sys
import subprocess
import shutil
import filecmp
import json

# SpikeGen core informations
import SpikeGen

from SpikeGen.intern.ConfigManagement import _update_global_config, ConfigManager
from SpikeGen.intern import Messages
from SpikeGen.generator.Template.MakefileTemplate import makefile_template
from SpikeGen.generator.CodeGenerator import CodeGenerator
from SpikeGen.generator.Sanity import check_structure

from packaging.version import parse as parse_version

# Location of the user configuration, created by setup.py
user_config_path = os.path.expanduser('~/.config/SpikeGen/spikegen.json')

# Extensions of the generated files which are removed when they are not generated anymore
generated_extensions = ['.h', '.cc', '.bin']

def _folder_management(code_dir, clean):
    """
    The code of a model is generated in the folder <directory>/<model>_CODE.
    The files are first written to the subfolder 'generate' and then copied
    to the code folder if they changed.

    *Parameter*:

    * code_dir : code folder
    * clean : remove the folder before the generation
    """
    Messages._debug("Create the code folder", code_dir)

    if clean:
        shutil.rmtree(code_dir, True)

    # Create the code folder
    if not os.path.exists(code_dir):
        os.makedirs(code_dir)

    # Staging folder
    if os.path.exists(code_dir + '/generate'):
        shutil.rmtree(code_dir + '/generate')
    os.mkdir(code_dir + '/generate')

    # Save current SpikeGen version and paradigm
    with open(code_dir + '/release', 'w') as wfile:
        wfile.write(ConfigManager().get('paradigm') + ', ' + SpikeGen.__release__)

def _check_release(code_dir):
    """
    Returns True if the code folder was generated by an older SpikeGen release
    or for another paradigm, which requires a clean generation.
    """
    if not os.path.isfile(code_dir + '/release'):
        return True

    with open(code_dir + '/release', 'r') as rfile:
        prev_release = rfile.read().strip()

    if prev_release.find(',') == -1:
        return True

    prev_paradigm, prev_release = prev_release.split(', ')
    if parse_version(prev_release) < parse_version(SpikeGen.__release__):
        return True

    return prev_paradigm != ConfigManager().get('paradigm')

def compile(
        model,
        directory='.',
        clean=False,
        build=False,
        compiler="default",
        compiler_flags="default",
        spikegen_json="",
        silent=False,
    ):
    """
    Generates the C++ simulation code of *model* in the folder ``<directory>/<model name>_CODE``
    and, if requested, builds it with the generated Makefile.

    The model is finalized if this has not been done yet. Only the files whose
    content changed are rewritten, so that make only rebuilds what is needed.

    The ``compiler`` and ``compiler_flags`` take their default value from the configuration file ``~/.config/SpikeGen/spikegen.json``.

    :param model: the NNModel to generate.
    :param directory: parent folder of the code folder (default: the current directory).
    :param clean: boolean specifying if the code folder should be emptied first (default: False).
    :param build: runs make in the code folder after the generation (default: False).
    :param compiler: C++ compiler to use. Default: g++ for the cpu paradigm, mpicxx for the mpi paradigm.
    :param compiler_flags: flags to pass to the compiler. Default: "-O3 -march=native".
    :param spikegen_json: path to an alternative configuration file.
    :param silent: defines if status message like "Code generation... OK" should be printed.
    :returns: the path of the code folder.
    """
    # Get command-line arguments. Note that setup() related flags has been partially parsed!
    options, unknown = SpikeGen._arg_parser.parser.parse_known_args()

    # Check for unknown flags
    if len(unknown) > 0 and ConfigManager().get('verbose'):
        Messages._warning('unrecognized command-line arguments:', unknown)

    # Debug build
    if options.debug:
        _update_global_config('debug', True)

    # Clean
    clean = options.clean or clean

    # Finalize
    if not model.finalized:
        model.finalize()

    # Code folder
    code_dir = os.path.abspath(os.path.join(directory, model.name + "_CODE"))

    if _check_release(code_dir):
        clean = True

    # Manage the code folder
    _folder_management(code_dir, clean)

    # Create a Compiler object
    compiler = Compiler(
        model=model,
        code_dir=code_dir,
        clean=clean,
        compiler=compiler,
        compiler_flags=compiler_flags,
        path_to_json=spikegen_json,
        silent=silent,
    )

    # Code generation
    compiler.generate(build)

    return code_dir


class Compiler(object):
    " Main class to generate the C++ code of a model."

    def __init__(self, model, code_dir, clean, compiler, compiler_flags, path_to_json, silent):

        # Store arguments
        self.model = model
        self.code_dir = code_dir
        self.clean = clean
        self.compiler = compiler
        self.compiler_flags = compiler_flags
        self.silent = silent

        self.generator = CodeGenerator(model, code_dir)

        # Aside from the arguments provided to compile, some configuration is stored in spikegen.json
        if len(path_to_json) == 0:
            if os.path.exists(user_config_path):
                with open(user_config_path, 'r') as rfile:
                    self.user_config = json.load(rfile)
            else:
                # Set default user-defined config
                self.user_config = {
                    'cpu': {
                        'compiler': 'clang++' if sys.platform == "darwin" else 'g++',
                        'flags': "-O3 -march=native",
                    },
                    'mpi': {
                        'compiler': 'mpicxx',
                        'flags': "-O3 -march=native",
                    }
                }
        else:
            # Load user-defined spikegen.json
            with open(path_to_json, 'r') as rfile:
                self.user_config = json.load(rfile)

    def generate(self, build=False):
        "Perform the code generation for the C++ code and create the Makefile."

        if not self.silent:
            Messages._print('Code generation of', self.model.name, '...', end=" ", flush=True)

        # Check that everything is allright in the structure of the model.
        check_structure(self.model)

        # Generate the code
        self.code_generation()

        # Generate the Makefile
        self.generate_makefile()

        # Copy the files if needed
        changed = self.copy_files()

        # Code generation done
        if not self.silent:
            Messages._print("OK", flush=True)

        # Perform compilation if something has changed
        if build and (changed or not os.path.isfile(self.library_path())):
            self.compilation()

        return changed

    def library_path(self):
        return self.code_dir + '/lib' + self.model.name + '.a'

    def _write(self, folder, files, mode):
        for filename, content in files.items():
            with open(folder + '/' + filename, mode) as wfile:
                wfile.write(content)

    def code_generation(self):
        """
        Writes the generated files into the staging folder. If a code fragment
        can not be expanded, the partially generated files are written into the
        code folder before the error is propagated.
        """
        target_folder = self.code_dir + '/generate'

        try:
            files = self.generator.generate()
        except Messages.ModelAuthoringError:
            if not self.silent:
                Messages._print("FAILED", flush=True)
            self._write(self.code_dir, self.generator.files, 'w')
            raise

        self._write(target_folder, files, 'w')
        self._write(target_folder, self.generator.binary_files, 'wb')

    def copy_files(self):
        " Copy the generated files in the code folder if needed."
        source_folder = self.code_dir + '/generate'
        changed = False

        for file in sorted(os.listdir(source_folder)):
            target = self.code_dir + '/' + file
            if self.clean or not os.path.isfile(target) or not filecmp.cmp(source_folder + '/' + file, target, shallow=False):
                shutil.copy(source_folder + '/' + file, target)
                changed = True
                Messages._debug(file, 'has changed')

        # Needs to check now if a file existed before but is not generated anymore
        for file in sorted(os.listdir(self.code_dir)):
            basename, extension = os.path.splitext(file)
            if extension not in generated_extensions:
                continue
            if not os.path.isfile(source_folder + '/' + file):
                os.remove(self.code_dir + '/' + file)
                if os.path.isfile(self.code_dir + '/' + basename + '.o'):
                    os.remove(self.code_dir + '/' + basename + '.o')
                changed = True

        shutil.rmtree(source_folder, True)
        return changed

    def generate_makefile(self):
        """
        Generate the Makefile building the static library lib<model>.a from
        the generated sources.
        """
        paradigm = ConfigManager().get('paradigm')
        config = self.user_config.get(paradigm, {})

        # Compiler
        if self.compiler == "default":
            self.compiler = config.get('compiler', self.generator.backend.default_compiler())
        if self.compiler_flags == "default":
            self.compiler_flags = config.get('flags', "-O3 -march=native")

        if not ConfigManager().get('debug'):
            cpu_flags = self.compiler_flags
        else:
            cpu_flags = "-O0 -g -D_DEBUG"

        sources = [f for f in self.generator.files.keys() if f.endswith('.cc')]
        headers = [f for f in self.generator.files.keys() if f.endswith('.h')]

        makefile_flags = {
            'model': self.model.name,
            'compiler': self.compiler,
            'cpu_flags': cpu_flags + " -std=c++11",
            'sources': " ".join(sources),
            'headers': " ".join(headers),
        }

        # Write the Makefile to the disk
        with open(self.code_dir + '/generate/Makefile', 'w') as wfile:
            wfile.write(makefile_template % makefile_flags)

    def compilation(self):
        """ Runs make in the code folder. """
        if not self.silent:
            msg = 'Compiling with ' + self.compiler + ' ' + self.compiler_flags if ConfigManager().get('verbose') else 'Compiling'
            Messages._print(msg + ' ...', end=" ", flush=True)

        # The output of make is only shown in verbose mode
        verbose = " > compile_stdout.log 2> compile_stderr.log" if not ConfigManager().get('verbose') else ""

        make_process = subprocess.Popen("make" + verbose, shell=True, cwd=self.code_dir)

        # Check for errors
        if make_process.wait() != 0:
            with open(self.code_dir + '/compilation', 'w') as wfile:
                wfile.write("0")
            if os.path.isfile(self.code_dir + '/compile_stderr.log'):
                with open(self.code_dir + '/compile_stderr.log', 'r') as rfile:
                    Messages._print(rfile.read())
            Messages._error('Compilation failed.')

        # Note that the last compilation was successful
        with open(self.code_dir + '/compilation', 'w') as wfile:
            wfile.write("1")

        if not self.silent:
            Messages._print('OK', flush=True)
