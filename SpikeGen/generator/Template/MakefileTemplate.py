"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

# Makefile building a static library of the generated simulation code, to be
# linked with the main program of the user.
#
# Parameters:
#
#    model: name of the model
#    compiler: C++ compiler (g++ or mpicxx by default)
#    cpu_flags: compiler flags
#    sources: generated source files
#    headers: generated header files
makefile_template = """# Makefile of the model %(model)s, generated by SpikeGen.

CXX = %(compiler)s
CXXFLAGS = %(cpu_flags)s
SOURCES = %(sources)s
HEADERS = %(headers)s
OBJECTS = $(SOURCES:.cc=.o)
LIBRARY = lib%(model)s.a

all: $(LIBRARY)

%%.o: %%.cc $(HEADERS)
\t$(CXX) $(CXXFLAGS) -c $< -o $@

$(LIBRARY): $(OBJECTS)
\tar rcs $@ $(OBJECTS)

clean:
\trm -f $(OBJECTS) $(LIBRARY)

.PHONY: all clean
"""
