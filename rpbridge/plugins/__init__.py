"""Handler registration surface exports."""

from .decorators import HandlerSpec, autocmd, command, function
from .host import RecordingHost
from .invocations import AutocommandInvocation, CommandInvocation, FunctionInvocation
from .loader import LoadedPlugin, PluginLoader
from .registry import HandlerRegistry
from .types import (
    DEFAULT_OPTS,
    Args,
    HandlerCategory,
    Host,
    LineRange,
    Options,
    PluginCompatibilityError,
    PluginContext,
    PluginDescriptor,
    PluginError,
    Registration,
    RegistrationError,
    RpbridgeError,
    make_options,
)

__all__ = [
    "Args",
    "AutocommandInvocation",
    "CommandInvocation",
    "DEFAULT_OPTS",
    "FunctionInvocation",
    "HandlerCategory",
    "HandlerRegistry",
    "HandlerSpec",
    "Host",
    "LineRange",
    "LoadedPlugin",
    "Options",
    "PluginCompatibilityError",
    "PluginContext",
    "PluginDescriptor",
    "PluginError",
    "PluginLoader",
    "RecordingHost",
    "Registration",
    "RegistrationError",
    "RpbridgeError",
    "autocmd",
    "command",
    "function",
    "make_options",
]
