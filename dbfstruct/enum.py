from enum import Flag


class Compliant(Flag):
    '''It indicates which degree of compliantness the data must reflect the format'''
    NONE  = 0
    NAMES = 1 << 0  # reject duplicate column names
    SIZES = 1 << 1  # reject a record size not matching the descriptors
    DEFAULT = SIZES
