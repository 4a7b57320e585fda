# Magic and version
CONTAINER_MAGIC = b"ZIPARCHIVE\n"  # 11 bytes
FOOTER_MAGIC = b"ENDZIP\n"         # 7 bytes

ZIP_VERSION = "zip 1.0.0"
UNZIP_VERSION = "unzip 1.0.0"

CONTAINER_EXT = ".zip"
EXTRACTED_SUFFIX = "_extracted"


# Entry path conventions
DIR_SUFFIX = "/"
SYMLINK_SUFFIX = ".symlink"


# Run codec
RUN_MARKER = 0xFF
MAX_RUN = 255
MIN_RUN_FORMAT = 4  # shortest run that a 3-byte record actually shrinks

MIN_LEVEL = 0
MAX_LEVEL = 9
DEFAULT_LEVEL = 6

# Minimum run length encoded per level; None stores literals (0xFF still escaped)
LEVEL_MIN_RUN = {
    0: None,
    1: 32,
    2: 24,
    3: 16,
    4: 12,
    5: 8,
    6: 6,
    7: 5,
    8: MIN_RUN_FORMAT,
    9: MIN_RUN_FORMAT,
}


def level_description(level: int) -> str:
    if level == 0:
        return "stored"
    if 1 <= level <= 3:
        return "fast compression"
    if 4 <= level <= 6:
        return "normal compression"
    if 7 <= level <= 9:
        return "maximum compression"
    return "compression"


# Extraction conflict policies
POLICY_OVERWRITE = "overwrite"
POLICY_NEVER = "never"
POLICY_FRESHEN = "freshen"
POLICY_UPDATE = "update"
POLICY_PROMPT = "prompt"  # unattended: behaves as if the user answered "no"

POLICIES = (POLICY_OVERWRITE, POLICY_NEVER, POLICY_FRESHEN, POLICY_UPDATE, POLICY_PROMPT)
DEFAULT_POLICY = POLICY_PROMPT

ENCRYPTION_UNSUPPORTED = "encryption not supported: archives are stored unencrypted, drop the password option"
