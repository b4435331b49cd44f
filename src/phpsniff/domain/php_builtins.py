"""Classes and interfaces that ship with a stock PHP 8 build.

Used by the global-namespace sniff when auto-detection is on. Names are
compared case-sensitively, the way they are declared.
"""

CORE_CLASSES = frozenset({
    # Core
    "stdClass", "Closure", "Generator", "WeakReference", "WeakMap", "Fiber",
    "Attribute", "ReturnTypeWillChange", "AllowDynamicProperties",
    "SensitiveParameter", "SensitiveParameterValue", "Override",
    "Traversable", "IteratorAggregate", "Iterator", "ArrayAccess",
    "Countable", "Serializable", "Stringable", "UnitEnum", "BackedEnum",
    # Errors and exceptions
    "Throwable", "Exception", "ErrorException", "Error", "CompileError",
    "ParseError", "TypeError", "ArgumentCountError", "ValueError",
    "ArithmeticError", "DivisionByZeroError", "UnhandledMatchError",
    "FiberError", "JsonException",
    # SPL exceptions
    "LogicException", "BadFunctionCallException", "BadMethodCallException",
    "DomainException", "InvalidArgumentException", "LengthException",
    "OutOfRangeException", "RuntimeException", "OutOfBoundsException",
    "OverflowException", "RangeException", "UnderflowException",
    "UnexpectedValueException",
    # SPL data structures and iterators
    "ArrayObject", "ArrayIterator", "RecursiveArrayIterator",
    "SplDoublyLinkedList", "SplQueue", "SplStack", "SplHeap", "SplMinHeap",
    "SplMaxHeap", "SplPriorityQueue", "SplFixedArray", "SplObjectStorage",
    "SplObserver", "SplSubject", "SplFileInfo", "SplFileObject",
    "SplTempFileObject", "DirectoryIterator", "FilesystemIterator",
    "RecursiveDirectoryIterator", "GlobIterator", "RecursiveIterator",
    "RecursiveIteratorIterator", "OuterIterator", "IteratorIterator",
    "FilterIterator", "CallbackFilterIterator", "RecursiveFilterIterator",
    "RecursiveCallbackFilterIterator", "ParentIterator", "LimitIterator",
    "CachingIterator", "RecursiveCachingIterator", "NoRewindIterator",
    "AppendIterator", "InfiniteIterator", "RegexIterator",
    "RecursiveRegexIterator", "EmptyIterator", "RecursiveTreeIterator",
    "MultipleIterator", "SeekableIterator",
    # Date
    "DateTime", "DateTimeImmutable", "DateTimeInterface", "DateTimeZone",
    "DateInterval", "DatePeriod",
    # Reflection
    "Reflection", "Reflector", "ReflectionException", "ReflectionClass",
    "ReflectionObject", "ReflectionMethod", "ReflectionFunction",
    "ReflectionFunctionAbstract", "ReflectionParameter", "ReflectionProperty",
    "ReflectionClassConstant", "ReflectionNamedType", "ReflectionUnionType",
    "ReflectionIntersectionType", "ReflectionType", "ReflectionEnum",
    "ReflectionEnumUnitCase", "ReflectionEnumBackedCase", "ReflectionAttribute",
    "ReflectionGenerator", "ReflectionFiber", "ReflectionReference",
    "ReflectionExtension", "ReflectionZendExtension",
    # Extensions commonly compiled in
    "PDO", "PDOStatement", "PDOException", "PDORow",
    "DOMDocument", "DOMElement", "DOMNode", "DOMNodeList", "DOMXPath",
    "DOMAttr", "DOMText", "DOMException", "DOMImplementation",
    "SimpleXMLElement", "SimpleXMLIterator", "XMLReader", "XMLWriter",
    "CURLFile", "CurlHandle", "CurlMultiHandle", "CurlShareHandle",
    "finfo", "ZipArchive", "Phar", "PharData", "PharFileInfo",
    "IntlDateFormatter", "NumberFormatter", "Collator", "Locale",
    "Normalizer", "MessageFormatter", "Transliterator",
    "mysqli", "mysqli_result", "mysqli_stmt", "mysqli_sql_exception",
    "SQLite3", "SQLite3Stmt", "SQLite3Result",
    "GdImage", "HashContext", "SessionHandler", "SessionHandlerInterface",
    "JsonSerializable", "php_user_filter", "Directory", "__PHP_Incomplete_Class",
})
