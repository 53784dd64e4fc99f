"""
Name Resolver Constants
All constants needed for unique name resolution during migrations
"""


class HTTPConstants:
    """HTTP status codes used in Lambda responses"""
    
    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    CONFLICT = 409
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    
    CONTENT_TYPE = 'Content-Type'
    JSON = 'application/json'


class NameKinds:
    """Kinds of names sharing the collision domain"""
    
    USERNAME = 'username'
    GROUP_NAME = 'group_name'
    
    ALL_KINDS = [USERNAME, GROUP_NAME]


class RegistryKeys:
    """Keys of the used-name sets in the shared store"""
    
    USERNAMES = 'usernames'
    GROUP_NAMES = 'group_names'
    
    BY_KIND = {
        NameKinds.USERNAME: USERNAMES,
        NameKinds.GROUP_NAME: GROUP_NAMES,
    }
    
    KIND_BY_KEY = {
        USERNAMES: NameKinds.USERNAME,
        GROUP_NAMES: NameKinds.GROUP_NAME,
    }


class ResolutionConstants:
    """Limits and defaults of the resolution search"""
    
    MAX_LENGTH = 60
    # Shortest cap that still fits a one-grapheme base plus "_1"
    MIN_MAX_LENGTH = 3
    MAX_ATTEMPTS = 500
    SUFFIX_CACHE_SIZE = 1000
    TRUNCATION_CACHE_SIZE = 500
    
    SUFFIX_SEPARATOR = '_'
    FIRST_SUFFIX = 1
    
    LAST_RESORT_USERNAME = 'user'
    FALLBACK_USERNAME = 'user'
    FALLBACK_GROUP_NAME = 'group'
    HERE_MENTION = 'here'


class ValidationConstants:
    """Character rules and reserved name defaults"""
    
    UNICODE_FORM = 'NFC'
    TRANSLITERATION_FORM = 'NFKD'
    
    # Unicode names: letters, marks, digits and . _ -
    INVALID_UNICODE_CHAR_PATTERN = r'[^\p{L}\p{M}\p{N}._-]'
    INVALID_LEADING_UNICODE_CHAR_PATTERN = r'\A[^\p{L}\p{M}\p{N}_]+'
    
    # ASCII names
    INVALID_ASCII_CHAR_PATTERN = r'[^A-Za-z0-9_.-]'
    INVALID_LEADING_ASCII_CHAR_PATTERN = r'\A[^A-Za-z0-9]+'
    
    INVALID_TRAILING_CHAR_PATTERN = r'[^\p{L}\p{M}\p{N}]+\Z'
    REPEATED_SPECIAL_CHAR_PATTERN = r'[-_.]{2,}'
    CONFUSING_EXTENSIONS_PATTERN = (
        r'\.(js|json|css|htm|html|xml|jpg|jpeg|png|gif|bmp|ico|tif|tiff|woff)\Z'
    )
    ASCII_ALLOWED_CHAR_PATTERN = r'[A-Za-z0-9_.-]'
    
    RESERVED_NAMES_SEPARATOR = '|'
    WILDCARD = '*'
    # The fallback username must stay claimable, so 'user' is not listed
    DEFAULT_RESERVED_USERNAMES = [
        'admin', 'moderator', 'administrator', 'mod', 'sys', 'system',
        'community', 'info', 'you', 'name', 'username', 'nickname', 'support'
    ]


class DatabaseConstants:
    """Database-related constants"""
    
    DEFAULT_REGION = 'us-east-1'
    USED_NAMES_TABLE_PREFIX = 'UsedNames'
    
    CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'
    THROTTLING_ERRORS = ['ThrottlingException', 'ProvisionedThroughputExceededException']
    
    MEMORY_BACKEND = 'memory'
    DYNAMODB_BACKEND = 'dynamodb'
