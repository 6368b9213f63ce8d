"""
lessanvil shrinks Minecraft worlds by removing chunks from their Anvil region files that players have barely spent any time in.
It includes an NBT library with both DOM and SAX-style parsing, a region file reader and compactor, and a command-line tool.
"""

#NBT Tag Types, Exceptions
from lessanvil.shared import (
    TAG_END, TAG_BYTE, TAG_SHORT, TAG_INT, TAG_LONG, TAG_FLOAT, TAG_DOUBLE, TAG_BYTE_ARRAY, TAG_STRING, TAG_LIST, TAG_COMPOUND, TAG_INT_ARRAY, TAG_LONG_ARRAY,
    TAG_COUNT,
    LessAnvilError, ChunkError, MalformedChunk, MalformedTag, UnsupportedCompression, DecompressionFailed, CorruptRegionFile, IOFailure,
    NBTFormatError, WrongTagError, OutOfBoundsError
)

#decode, encode, NBTDocument and TAG_* Classes
from lessanvil.tag import decode, encode, NBTDocument, TAG_Byte, TAG_Short, TAG_Int, TAG_Long, TAG_Float, TAG_Double, TAG_Byte_Array, TAG_String, TAG_List, TAG_Compound, TAG_Int_Array, TAG_Long_Array

#NBT Parser + Handler
from lessanvil.parse import parse
from lessanvil.handler import NBTHandler

#Compression schemes
from lessanvil.compression import COMPRESSION_GZIP, COMPRESSION_ZLIB, COMPRESSION_NONE

#Region files
from lessanvil.region import Slot, parseRegion, readRegion, decodeChunk, chunkTree, buildRegion, writeRegion

#Keep / remove decisions
from lessanvil.filter import KEEP, REMOVE, MISSING_KEEP, MISSING_REMOVE, getActivity, scanActivity, decide

#Worlds and whole runs
from lessanvil.world import DIM_NETHER, DIM_OVERWORLD, DIM_END
from lessanvil.process import Config, Report, RegionReport, execute


#Export everything we imported above
__all__ = [
    "TAG_END", "TAG_BYTE", "TAG_SHORT", "TAG_INT", "TAG_LONG", "TAG_FLOAT", "TAG_DOUBLE", "TAG_BYTE_ARRAY", "TAG_STRING", "TAG_LIST", "TAG_COMPOUND", "TAG_INT_ARRAY", "TAG_LONG_ARRAY",
    "TAG_COUNT",
    "LessAnvilError", "ChunkError", "MalformedChunk", "MalformedTag", "UnsupportedCompression", "DecompressionFailed", "CorruptRegionFile", "IOFailure",
    "NBTFormatError", "WrongTagError", "OutOfBoundsError",
    "decode", "encode", "NBTDocument", "TAG_Byte", "TAG_Short", "TAG_Int", "TAG_Long", "TAG_Float", "TAG_Double", "TAG_Byte_Array", "TAG_String", "TAG_List", "TAG_Compound", "TAG_Int_Array", "TAG_Long_Array",
    "parse",
    "NBTHandler",
    "COMPRESSION_GZIP", "COMPRESSION_ZLIB", "COMPRESSION_NONE",
    "Slot", "parseRegion", "readRegion", "decodeChunk", "chunkTree", "buildRegion", "writeRegion",
    "KEEP", "REMOVE", "MISSING_KEEP", "MISSING_REMOVE", "getActivity", "scanActivity", "decide",
    "DIM_NETHER", "DIM_OVERWORLD", "DIM_END",
    "Config", "Report", "RegionReport", "execute"
]
