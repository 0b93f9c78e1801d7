"""
Constants and configuration values for template-driven extraction.
"""

# Region acceptance gate: boxes with either side at or below this are rejected
MIN_REGION_SIZE = 10

# Placeholder used when a region has no field name (1-based position)
DEFAULT_FIELD_NAME = 'Field {position}'

# Shapes a region can take
SHAPE_TYPES = ['rectangle', 'ellipse']

# Older template exports used 'circle' for ellipses
LEGACY_SHAPE_ALIASES = {
    'circle': 'ellipse',
}

# OCR parameters applied to every region crop
DEFAULT_OCR_PARAMS = {
    'language': 'eng',
    'upscale_factor': 2.0,
    'throttle_delay': 0.05,  # seconds between consecutive recognitions
    'tesseract_config': '--psm 6',
    'model': 'ocr',  # model name on the vision server
    'max_tokens': 512,
    'temperature': 0.0,
}

# Prompt for OpenAI-compatible vision backends
OCR_PROMPTS = {
    'region': 'Transcribe the text in this image exactly. Reply with the text only.',
}

# Page rendering defaults and limits
DEFAULT_RENDER_OPTIONS = {
    'scale': 3.0,
    'quality': 1.0,
    'image_format': 'png',
    'antialiasing': True,
}

RENDER_LIMITS = {
    'min_scale': 1.0,
    'max_scale': 5.0,
    'min_quality': 0.1,
    'max_quality': 1.0,
}

IMAGE_FORMATS = ['png', 'jpeg']

PDF_EXTENSIONS = {'.pdf'}
RASTER_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.tif', '.tiff', '.bmp'}

# Confidence bands used when reviewing results (lower bound, inclusive)
CONFIDENCE_BANDS = {
    'high': 80,
    'medium': 30,
    'low': 0,
}

# CSV column sets per export mode
CSV_HEADERS = {
    'full': [
        'Field Name',
        'Extracted Text',
        'Page Number',
        'Confidence Score (%)',
        'Position X',
        'Position Y',
        'Width',
        'Height',
        'Selection Type',
    ],
    'summary': ['Field Name', 'Extracted Text', 'Page Number'],
    'grouped_by_page': ['Page', 'Field Name', 'Extracted Text', 'Confidence (%)'],
}

# Default export filenames; {date} is an ISO calendar date
CSV_FILENAMES = {
    'full': 'pid_extracted_data_{date}.csv',
    'summary': 'pid_data_summary_{date}.csv',
    'grouped_by_page': 'pid_data_by_page_{date}.csv',
}

TEMPLATE_FILENAME_SUFFIX = '_template.json'
