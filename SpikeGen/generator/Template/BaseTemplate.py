"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

# Common header of all generated files
#
# Parameters:
#
#    file: name of the generated file
#    model: name of the model
#    description: content of the file
file_banner = """/*
 *    %(file)s
 *
 *    %(description)s of the model %(model)s.
 *    Generated by SpikeGen, do not edit.
 */
"""

# definitions.h
#
# Parameters:
#
#    precision: float or double
#    dt: integration step
#    scalar_max: largest value of the scalar type
#    population_structs, synapse_structs: struct definitions of the groups
#    context_members: one member per group
#    input_args: array input currents of calcNeuronsCPU / stepTimeCPU
#    synapse_prototypes: group-specific functions of runner.cc
#    learn_prototype: learnSynapsesPostHost() if required
definitions_header = """#ifndef DEFINITIONS_H
#define DEFINITIONS_H

#include <cstdlib>
#include <cstdio>
#include <cstdint>
#include <cmath>
#include <cfloat>
#include <random>

typedef %(precision)s scalar;

#define DT %(dt)s
#define SCALAR_MAX %(scalar_max)s

// bit i (counted from the most significant bit) of the word x
#define B(x, i) ((x) & (0x80000000 >> (i)))
%(population_structs)s%(synapse_structs)s
///////////////////////////////////////////////////////////////
// Runtime state of the whole model
///////////////////////////////////////////////////////////////
struct SimulationContext {
%(context_members)s
    std::mt19937 rng;
};

// runner.cc
void allocateMem(SimulationContext &ctx);
void initialize(SimulationContext &ctx);
void freeMem(SimulationContext &ctx);
void stepTimeCPU(SimulationContext &ctx%(input_args)s, scalar t);
%(synapse_prototypes)s
// neuronFnct.cc
void calcNeuronsCPU(SimulationContext &ctx%(input_args)s, scalar t);

// synapseFnct.cc
void calcSynapsesCPU(SimulationContext &ctx, scalar t);
%(learn_prototype)s
#endif
"""

context_member = """    NeuronGroup%(name)s %(name)s;
"""

context_synapse_member = """    SynapseGroup%(name)s %(name)s;
"""

learn_prototype = """void learnSynapsesPostHost(SimulationContext &ctx, scalar t);
"""

# runner.cc
#
# Parameters:
#
#    includes: additional headers
#    group_functions: allocation and initialization functions of the synapse groups
#    allocate, initialize, free: bodies of allocateMem(), initialize(), freeMem()
#    seed: seeding of the random number generator
#    input_args / input_names: array input currents
#    communicate: spike exchange between the cluster hosts
#    learn: call of the postsynaptic learning pass
runner_body = """#include <cstring>
#include "definitions.h"
%(includes)s
template <typename T>
void allocateArray(T *&ptr, size_t count, bool zeroCopy) {
    ptr = NULL;
    if (count == 0) {
        return;
    }

    if (zeroCopy) {
        // page-aligned buffer which can be mapped by a device
        void *memory = NULL;
        if (posix_memalign(&memory, 4096, count * sizeof(T)) != 0) {
            fprintf(stderr, "allocateArray: can not allocate %%zu aligned elements\\n", count);
            exit(EXIT_FAILURE);
        }
        memset(memory, 0, count * sizeof(T));
        ptr = (T *) memory;
    }
    else {
        ptr = (T *) calloc(count, sizeof(T));
        if (ptr == NULL) {
            fprintf(stderr, "allocateArray: can not allocate %%zu elements\\n", count);
            exit(EXIT_FAILURE);
        }
    }
}

template <typename T>
void freeArray(T *&ptr) {
    free(ptr);
    ptr = NULL;
}

static FILE *openConnectivityFile(const char *path) {
    FILE *f = fopen(path, "rb");
    if (f == NULL) {
        fprintf(stderr, "can not open the connectivity file %%s\\n", path);
        exit(EXIT_FAILURE);
    }
    return f;
}

// Reads exactly count elements, a NULL target skips them
static void readStream(void *target, size_t size, size_t count, FILE *f, const char *path) {
    if (target == NULL) {
        if (fseek(f, (long) (size * count), SEEK_CUR) != 0) {
            fprintf(stderr, "%%s: can not skip %%zu elements\\n", path, count);
            exit(EXIT_FAILURE);
        }
        return;
    }

    size_t numRead = fread(target, size, count, f);
    if (numRead != count) {
        fprintf(stderr, "%%s: expected %%zu elements but only %%zu could be read, the file is truncated\\n", path, count, numRead);
        exit(EXIT_FAILURE);
    }
}
%(group_functions)s
void allocateMem(SimulationContext &ctx) {
%(allocate)s}

void initialize(SimulationContext &ctx) {
%(seed)s
%(initialize)s}

void freeMem(SimulationContext &ctx) {
%(free)s}

void stepTimeCPU(SimulationContext &ctx%(input_args)s, scalar t) {
    calcNeuronsCPU(ctx%(input_names)s, t);
%(communicate)s    calcSynapsesCPU(ctx, t);
%(learn)s}
"""

seed_fixed = """    ctx.rng.seed(%(seed)s);"""

seed_random = """    std::random_device rd;
    ctx.rng.seed(rd());"""

learn_call = """    learnSynapsesPostHost(ctx, t);
"""

# neuronFnct.cc, the updates of the neuron groups are placed between head and tail
#
# Parameters:
#
#    includes: additional headers
#    support_code: support code of the neuron models
#    input_args: array input currents
neuron_head = """#include "definitions.h"
%(includes)s
%(support_code)s
void calcNeuronsCPU(SimulationContext &ctx%(input_args)s, scalar t) {"""

neuron_tail = """}
"""

# synapseFnct.cc, followed by calcSynapsesCPU() and learnSynapsesPostHost()
#
# Parameters:
#
#    includes: additional headers
#    support_code: support code of the weight update models
synapse_head = """#include "definitions.h"
%(includes)s
%(support_code)s"""

#
# Final dictionary
base_templates = {
    'file_banner': file_banner,
    'definitions_header': definitions_header,
    'context_member': context_member,
    'context_synapse_member': context_synapse_member,
    'learn_prototype': learn_prototype,
    'runner_body': runner_body,
    'seed_fixed': seed_fixed,
    'seed_random': seed_random,
    'learn_call': learn_call,
    'neuron_head': neuron_head,
    'neuron_tail': neuron_tail,
    'synapse_head': synapse_head,
}
