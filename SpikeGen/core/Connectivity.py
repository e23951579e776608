"""
Connectivity representations of a synapse group.

* "dense": all-to-all, the synapse between ipre and ipost has the address ipre * num_post + ipost.
* "sparse": compressed rows (ind_in_g, ind), see SparseProjection.
* "bitmask": dense address space where every synapse is enabled by one bit.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

import numpy as np
import scipy.sparse

from SpikeGen.intern import Messages

# Connectivity types
DENSE = "dense"
SPARSE = "sparse"
BITMASK = "bitmask"
connectivity_types = [DENSE, SPARSE, BITMASK]

# Weight storage
GLOBAL = "global"
INDIVIDUAL = "individual"
PROCEDURAL = "procedural"
weight_types = [GLOBAL, INDIVIDUAL, PROCEDURAL]

# Bits per bitmask word
WORD_BITS = 32
WORD_SHIFT = 5

class SparseProjection(object):
    """
    Compressed row representation of the synapses between *num_pre* and *num_post* neurons.

    :param ind_in_g: row offsets, num_pre + 1 unsigned integers.
    :param ind: column indices (postsynaptic ranks), conn_n integers.
    :param num_post: number of postsynaptic neurons, used to validate *ind*.
    :param weights: optional conn_n weights.
    """
    def __init__(self, ind_in_g, ind, num_post=None, weights=None):
        self.ind_in_g = np.ascontiguousarray(ind_in_g, dtype=np.uint32)
        self.ind = np.ascontiguousarray(ind, dtype=np.int32)
        self.num_post = int(num_post) if num_post is not None else (int(self.ind.max()) + 1 if self.ind.size > 0 else 0)
        self.weights = np.ascontiguousarray(weights) if weights is not None else None

        self.validate()

    @property
    def num_pre(self):
        return self.ind_in_g.size - 1

    @property
    def conn_n(self):
        return self.ind.size

    def validate(self):
        """
        Checks the invariants of the compressed representation and raises a
        DataCorruptionError if one is violated.
        """
        if self.ind_in_g.ndim != 1 or self.ind_in_g.size < 1:
            raise Messages.DataCorruptionError("SparseProjection: the row offsets must be a non-empty vector.")

        if self.ind_in_g[0] != 0:
            raise Messages.DataCorruptionError("SparseProjection: the first row offset must be 0, got " + str(self.ind_in_g[0]))

        if np.any(np.diff(self.ind_in_g.astype(np.int64)) < 0):
            raise Messages.DataCorruptionError("SparseProjection: the row offsets must be non-decreasing.")

        if int(self.ind_in_g[-1]) != self.conn_n:
            raise Messages.DataCorruptionError("SparseProjection: the last row offset (" + str(self.ind_in_g[-1]) + ") differs from the number of connections (" + str(self.conn_n) + ").")

        if self.conn_n > 0 and (self.ind.min() < 0 or self.ind.max() >= self.num_post):
            raise Messages.DataCorruptionError("SparseProjection: a postsynaptic index is out of [0, " + str(self.num_post) + ").")

        if self.weights is not None and self.weights.size != self.conn_n:
            raise Messages.DataCorruptionError("SparseProjection: " + str(self.weights.size) + " weights for " + str(self.conn_n) + " connections.")

    def out_degree(self, ipre=None):
        "Number of synapses of the presynaptic neuron *ipre*, or of all neurons."
        degrees = np.diff(self.ind_in_g.astype(np.int64))
        if ipre is None:
            return degrees
        return int(degrees[ipre])

    def row(self, ipre):
        "Postsynaptic ranks of the neuron *ipre*."
        return self.ind[self.ind_in_g[ipre]:self.ind_in_g[ipre+1]]

    def to_csr(self):
        "Returns a scipy.sparse.csr_matrix of shape (num_pre, num_post)."
        data = self.weights if self.weights is not None else np.ones(self.conn_n)
        return scipy.sparse.csr_matrix((data, self.ind, self.ind_in_g), shape=(self.num_pre, self.num_post))

    def to_dense(self):
        "Returns the dense weight matrix (ones where no weights are stored)."
        return self.to_csr().toarray()

    @classmethod
    def from_matrix(cls, matrix, with_weights=True):
        """
        Builds the projection from a dense array or a scipy sparse matrix of shape
        (num_pre, num_post). Non-zero entries are synapses.
        """
        csr = scipy.sparse.csr_matrix(matrix)
        csr.eliminate_zeros()
        csr.sort_indices()
        weights = csr.data if with_weights else None
        return cls(csr.indptr, csr.indices, num_post=csr.shape[1], weights=weights)

    @classmethod
    def from_lists(cls, rows, num_post, weights=None):
        """
        Builds the projection from a list containing for each presynaptic neuron
        the list of its postsynaptic ranks.
        """
        ind_in_g = np.zeros(len(rows) + 1, dtype=np.uint32)
        ind_in_g[1:] = np.cumsum([len(r) for r in rows])
        ind = np.concatenate([np.array(r, dtype=np.int32) for r in rows]) if len(rows) > 0 else np.zeros(0, dtype=np.int32)
        if weights is not None:
            weights = np.concatenate([np.array(w) for w in weights])
        return cls(ind_in_g, ind, num_post=num_post, weights=weights)

    def __eq__(self, other):
        if not isinstance(other, SparseProjection):
            return False
        same_weights = (self.weights is None and other.weights is None) or \
            (self.weights is not None and other.weights is not None and np.array_equal(self.weights, other.weights))
        return self.num_post == other.num_post and np.array_equal(self.ind_in_g, other.ind_in_g) \
            and np.array_equal(self.ind, other.ind) and same_weights

    def __repr__(self):
        return "SparseProjection(num_pre=" + str(self.num_pre) + ", num_post=" + str(self.num_post) + ", conn_n=" + str(self.conn_n) + ")"

#####################################################################
#   Bitmask connectivity
#####################################################################
def bitmask_words(num_pre, num_post):
    "Number of 32-bit words needed for num_pre * num_post synapses."
    return (num_pre * num_post + WORD_BITS - 1) // WORD_BITS

def bit(word, idx):
    "Value of the bit *idx* (0 is the most significant bit) in *word*, as the B(x, i) macro."
    return (int(word) & (0x80000000 >> int(idx))) != 0

def set_bit(words, address):
    "Enables the synapse *address* in the bitmask *words*."
    words[address >> WORD_SHIFT] |= np.uint32(0x80000000 >> (address & (WORD_BITS - 1)))

def is_connected(words, address):
    "True if the synapse *address* is enabled in the bitmask *words*."
    return bit(words[address >> WORD_SHIFT], address & (WORD_BITS - 1))

def pack_bitmask(mask):
    """
    Packs a boolean (num_pre, num_post) array into uint32 words: synapse
    ``ipre * num_post + ipost`` is bit ``address & 31`` (counted from the most
    significant bit) of word ``address >> 5``.
    """
    mask = np.asarray(mask, dtype=bool)
    flat = mask.reshape(-1)
    num_words = (flat.size + WORD_BITS - 1) // WORD_BITS
    padded = np.zeros(num_words * WORD_BITS, dtype=bool)
    padded[:flat.size] = flat
    return np.packbits(padded).view('>u4').astype(np.uint32)

def unpack_bitmask(words, num_pre, num_post):
    "Inverse of pack_bitmask()."
    bits = np.unpackbits(np.asarray(words, dtype=np.uint32).astype('>u4').view(np.uint8))
    return bits[:num_pre * num_post].astype(bool).reshape(num_pre, num_post)

def bitmask_from_projection(projection, num_post=None):
    """
    Bitmask words of a SparseProjection.

    *num_post* is the size of the target population, which gives the row
    stride ``ipre * num_post + ipost`` of the synapse addresses (default:
    projection.num_post). It can not be smaller than projection.num_post.
    """
    if num_post is None:
        num_post = projection.num_post
    if num_post < projection.num_post:
        raise Messages.InvalidConfiguration("a bitmask of " + str(num_post) + " postsynaptic neurons can not hold a connectivity addressing " + str(projection.num_post) + " neurons.")

    mask = np.zeros((projection.num_pre, num_post), dtype=bool)
    for ipre in range(projection.num_pre):
        mask[ipre, projection.row(ipre)] = True
    return pack_bitmask(mask)
