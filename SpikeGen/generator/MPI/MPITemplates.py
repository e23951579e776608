"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

# Header of the spike exchange between the cluster hosts
#
# Parameters:
#
#    model: name of the model
#    prototypes: push/pull functions of the exchanged populations
infra_header = """/*
 *    infraMPI.h
 *
 *    Spike exchange between the cluster hosts of the model %(model)s.
 *    Generated by SpikeGen, do not edit.
 */
#ifndef INFRAMPI_H
#define INFRAMPI_H

#include <mpi.h>
#include "definitions.h"

// rank of this process
extern int localID;

void initMPI(int *argc, char ***argv);
void finalizeMPI();

%(prototypes)s
void communicateSpikes(SimulationContext &ctx);

#endif
"""

push_prototype = """void push%(name)sSpikesToRemote(SimulationContext &ctx, int remote, int tag);
"""

pull_prototype = """void pull%(name)sSpikesFromRemote(SimulationContext &ctx, int remote, int tag);
"""

# Implementation of the spike exchange
#
# Parameters:
#
#    model: name of the model
#    push_pull: push/pull functions of the exchanged populations
#    transfers: transfers executed by communicateSpikes() in their global order
infra_body = """/*
 *    infraMPI.cc
 *
 *    Spike exchange between the cluster hosts of the model %(model)s.
 *    Generated by SpikeGen, do not edit.
 */
#include <cstdio>
#include "infraMPI.h"

int localID = 0;

// Any failed call terminates all ranks
static void checkMPI(int result, const char *call) {
    if (result != MPI_SUCCESS) {
        char message[MPI_MAX_ERROR_STRING];
        int length = 0;
        MPI_Error_string(result, message, &length);
        fprintf(stderr, "rank %%d: %%s failed: %%s\\n", localID, call, message);
        MPI_Abort(MPI_COMM_WORLD, result);
    }
}

void initMPI(int *argc, char ***argv) {
    checkMPI(MPI_Init(argc, argv), "MPI_Init");
    checkMPI(MPI_Comm_set_errhandler(MPI_COMM_WORLD, MPI_ERRORS_RETURN), "MPI_Comm_set_errhandler");
    checkMPI(MPI_Comm_rank(MPI_COMM_WORLD, &localID), "MPI_Comm_rank");
}

void finalizeMPI() {
    checkMPI(MPI_Finalize(), "MPI_Finalize");
}
%(push_pull)s
void communicateSpikes(SimulationContext &ctx) {
%(transfers)s}
"""

# Spikes of one population
#
# Parameters:
#
#    name: name of the population
#    buffers: send or receive calls, one per buffer
push_function = """
// Population %(name)s: spike counts of %(count_size)s slot(s), %(spike_size)s spike entries
void push%(name)sSpikesToRemote(SimulationContext &ctx, int remote, int tag) {
%(buffers)s}
"""

pull_function = """
// Population %(name)s: spike counts of %(count_size)s slot(s), %(spike_size)s spike entries
void pull%(name)sSpikesFromRemote(SimulationContext &ctx, int remote, int tag) {
%(buffers)s}
"""

send_buffer = """    checkMPI(MPI_Send(ctx.%(name)s.%(field)s, %(size)s, MPI_UNSIGNED, remote, tag, MPI_COMM_WORLD), "MPI_Send(%(name)s.%(field)s)");
"""

recv_buffer = """    checkMPI(MPI_Recv(ctx.%(name)s.%(field)s, %(size)s, MPI_UNSIGNED, remote, tag, MPI_COMM_WORLD, MPI_STATUS_IGNORE), "MPI_Recv(%(name)s.%(field)s)");
"""

# One transfer of communicateSpikes()
#
# Parameters:
#
#    name: name of the population
#    sender, receiver: cluster hosts
#    tag: message tag of the population
transfer = """    // %(name)s: host %(sender)s -> host %(receiver)s
    if (localID == %(sender)s) {
        push%(name)sSpikesToRemote(ctx, %(receiver)s, %(tag)s);
    }
    else if (localID == %(receiver)s) {
        pull%(name)sSpikesFromRemote(ctx, %(sender)s, %(tag)s);
    }
"""

#
# Final dictionary
mpi_templates = {
    'infra_header': infra_header,
    'push_prototype': push_prototype,
    'pull_prototype': pull_prototype,
    'infra_body': infra_body,
    'push_function': push_function,
    'pull_function': pull_function,
    'send_buffer': send_buffer,
    'recv_buffer': recv_buffer,
    'transfer': transfer,
}
