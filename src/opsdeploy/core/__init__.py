"""
Core utilities: errors, shell commands and source revision.

Copyright (c) Advanced Micro Devices, Inc. All rights reserved.
"""
