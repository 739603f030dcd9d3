class ParseError(Exception):
    UNKNOWN_OPCODE = 'UnknownOpcode'
    MALFORMED_OPERAND = 'MalformedOperand'
    DUPLICATE_LABEL = 'DuplicateLabel'

    kind: str
    line: int

    def __init__(self, kind: str, message: str, line: int):
        super().__init__(f'{kind} at line {line}: {message}')
        self.kind = kind
        self.message = message
        self.line = line


class InternalError(Exception):
    ''' Broken invariant of the parser/interpreter contract, never a script fault '''
    pass


class KernelError(Exception):
    ''' Raised by a computation kernel '''
    pass


class ScriptError(Exception):
    ''' Runtime fault of a script, ends the run with an Error status '''
    kind = 'RuntimeError'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReturnWithoutCall(ScriptError):
    kind = 'ReturnWithoutCall'


class UndefinedLabel(ScriptError):
    kind = 'UndefinedLabel'


class InvalidFlagReference(ScriptError):
    kind = 'InvalidFlagReference'


class TypeMismatch(ScriptError):
    kind = 'TypeMismatch'


class StackUnderflow(ScriptError):
    kind = 'StackUnderflow'


class InvalidAddress(ScriptError):
    kind = 'InvalidAddress'


class HostBridgeError(ScriptError):
    kind = 'HostBridgeError'


class ExecuteDepthExceeded(ScriptError):
    kind = 'ExecuteDepthExceeded'


class SubscriptError(ScriptError):
    kind = 'SubscriptError'
