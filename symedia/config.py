"""
Configuration constants for symedia.
"""
import re

# --- File Type Definitions ---
# Matched with re.search against the whole file name, so "photo.JPG.bak"
# still counts as an image. PNG and GIF carry no embedded timestamps.
IMAGE_PATTERN = re.compile(r'.(jpe?g)', re.IGNORECASE)
VIDEO_PATTERN = re.compile(r'.(mov|mp4|m4v)', re.IGNORECASE)

# --- Image Metadata ---
# Original, then the IFD0 modification date; Digitized only as a last resort
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'Image DateTime',
    'EXIF DateTimeDigitized',
]

# Offset tags paired with DATE_TAGS (EXIF 2.31+)
OFFSET_TAGS = {
    'EXIF DateTimeOriginal': 'EXIF OffsetTimeOriginal',
    'EXIF DateTimeDigitized': 'EXIF OffsetTimeDigitized',
    'Image DateTime': 'EXIF OffsetTime',
}

WIDTH_TAG = 'EXIF ExifImageWidth'
HEIGHT_TAG = 'EXIF ExifImageLength'

EXIF_DATE_LAYOUT = "%Y:%m:%d %H:%M:%S"

# --- Video Metadata ---
FFPROBE_BIN = "ffprobe"
FFPROBE_ARGS = ["-v", "quiet", "-print_format", "json", "-show_format", "-show_streams"]

QT_CREATION_DATE_TAG = "com.apple.quicktime.creationdate"
CREATION_TIME_TAG = "creation_time"

# Timezone-qualified layout of the QuickTime creation date, e.g. 2016-07-18T12:29:35+1000
TZ_DATE_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"

# creation_time layouts emitted by different ffprobe versions.
# (strptime layout, value is UTC)
VIDEO_DATE_LAYOUTS = {
    'iso': ("%Y-%m-%dT%H:%M:%S.%fZ", True),      # 2016-07-18T02:29:36.000000Z
    'legacy': ("%Y-%m-%d %H:%M:%S", False),      # 2016-07-18 02:29:36
}
DEFAULT_VIDEO_DATE_LAYOUT = 'iso'

# --- Organization ---
# strftime %b follows the locale; destination folders must not.
MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
              'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

FOLDER_PATTERN = "{year}/{month:02d}-{month_abbr}/{year:04d}-{month:02d}-{day:02d}"
FILENAME_LAYOUT = "%Y-%m-%d %H.%M.%S %z"

# --- Output ---
DEFAULT_OUTPUT_DIR = "output"
JSON_FILENAME = "files.json"
REPORT_FILENAME = "errors.html"
TEMPLATE_FILENAME = "error-template.html"
LOG_FILENAME = "symedia.log"
