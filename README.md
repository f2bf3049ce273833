# logpatterns

Find out what your logs are saying without reading every line.

`logpatterns` reads raw log lines and joins multi-line entries (Python
tracebacks, Java and JavaScript stack traces) into single messages. It then
guesses each message's severity. Warnings, errors and critical messages are
grouped by their *pattern*, which is the message with numbers, hex values,
UUIDs, quoted strings and bracketed parts taken out. Two messages whose
patterns have the same number of words and differ in one word at most are
counted together. Unknown, debug and info messages are counted per level only.

## Installation

```
pip install .
```

You need Python 3.10 or later. The package has no third-party dependencies.

## Command line

Pipe a log into `logpatterns`:

```
kubectl logs my-pod | logpatterns
logpatterns -w 160 -l 20 < app.log
```

Options:

- `-w` – terminal width. Sample lines longer than the width minus 20 are
  cut and end in `...`. The default is 120.
- `-l` – the most lines printed for each message sample. The default is 100.

Each line of input is one log line. A final line that has no trailing
newline is ignored.

The output has one entry for each pattern. The most severe level comes first,
and within a level the most frequent pattern comes first. Each entry shows:

- a bar
- the number of messages
- its share of all patterned messages
- a sample message, coloured by severity

A summary follows. It gives the total number of messages, the time taken and
the count for each level.

## Library

```python
from datetime import datetime

from logpatterns.level import guess_level
from logpatterns.multiline import LogEntry
from logpatterns.parser import Parser
from logpatterns.pattern import new_pattern

guess_level("W0430 11:29:23.177635 1 nanny.go:120] Got EOF from stdout")
# -> Level.WARNING

str(new_pattern("WARN client 192.168.1.8:57600 closed connection after 1.000s"))
# -> 'WARN client closed connection after'

with Parser() as parser:
    with open("app.log", encoding="utf-8") as log:
        for line in log:
            parser.add(LogEntry(timestamp=datetime.now(), content=line))

for counter in parser.get_counters():
    print(counter.level, counter.messages, counter.sample)
```

`Parser` takes these arguments:

- `decoder` – a `Decoder` applied to each line. Lines that raise
  `DecodeError` are skipped.
- `on_message` – a callback. It is called for each message with the
  timestamp, level, pattern hash and content. The hash is empty for unknown,
  debug and info messages.
- `multiline_timeout` – seconds of silence after which the pending message
  is complete. The default is 1.0.
- `limit` – the largest size of one message in bytes. The default is 64 KiB.

`stop()` emits the last message and waits until every message is counted.
Leaving the `with` block calls it.

The modules are:

- `logpatterns.level` – `Level`, `guess_level`, `level_from_string` and
  `level_by_priority`. `level_by_priority` maps the syslog priorities
  `"0"` to `"7"` to levels.
- `logpatterns.timestamp` – `contains_timestamp`. It checks whether the
  first 100 bytes of a line contain a time of day of the form `hh:mm:ss`.
- `logpatterns.pattern` – `Pattern`, `new_pattern`, `pattern_from_words`
  and `remove_quoted_and_brackets`. A `Pattern` has the methods `hash()`,
  which returns an MD5 hex digest, and `weak_equal()`.
- `logpatterns.decoder` – `DockerJsonDecoder` and `CriDecoder`. They take
  the log text out of the Docker `json-file` format and the CRI log format.
  Both raise `DecodeError` on bad input.
- `logpatterns.multiline` – `MultilineCollector`. It joins `LogEntry` lines
  into `Message` objects and puts them on its `messages` queue. `close()`
  emits the pending message and then puts `None` on the queue.
- `logpatterns.parser` – `Parser`. It reports its counts as `LogCounter`
  objects.
- `logpatterns.cli` – the command. It also provides `order`, `colorize` and
  `render` for formatting counters.

## Running the tests

```
pip install ".[test]"
pytest
```