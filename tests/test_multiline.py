import queue
from datetime import datetime, timedelta, timezone

import pytest

from logpatterns.level import Level
from logpatterns.multiline import (
    MULTILINE_COLLECTOR_LIMIT,
    LogEntry,
    Message,
    MultilineCollector,
)

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)

CAUSE_SEPARATOR = "The above exception was the direct cause of the following exception:"
DURING_SEPARATOR = "During handling of the above exception, another exception occurred:"


def drain(messages):
    result = []
    while True:
        msg = messages.get_nowait()
        if msg is None:
            return result
        result.append(msg)


def write_by_line(data, ts=EPOCH, limit=MULTILINE_COLLECTOR_LIMIT):
    with MultilineCollector(timeout=60, limit=limit) as collector:
        for line in data.split("\n"):
            collector.add(LogEntry(ts, line, Level.UNKNOWN))
            ts += timedelta(milliseconds=1)
    return drain(collector.messages)


def py_frame(path, lineno, func, code=None):
    frame = f'  File "{path}", line {lineno}, in {func}'
    return frame if code is None else f"{frame}\n    {code}"


def py_traceback(frames, final):
    return "\n".join(["Traceback (most recent call last):", *frames, final])


def chained(*parts):
    """Join tracebacks with Python's chaining separators between them."""
    pieces = [parts[0]]
    for separator, part in zip(parts[1::2], parts[2::2]):
        pieces.extend(["", separator, "", part])
    return "\n".join(pieces)


def java_frames(prefix, count, start=10):
    return [
        f"\tat org.sample.{prefix}.Worker{n}.run(Worker{n}.java:{start + n})"
        for n in range(count)
    ]


def js_frames(prefix, count):
    return [
        f"    at {prefix}{n}.process (/srv/web/lib/{prefix.lower()}{n}.js:{n + 1}:{n + 7})"
        for n in range(count)
    ]


def test_json_lines_are_separate_messages():
    first = 'Order response: {"status":406,"error":"Not Acceptable","path":"/orders","body":{"items":3}}'
    second = 'Order response: {"status":200,"path":"/cart"}'
    msgs = write_by_line(first + "\n" + second)
    assert len(msgs) == 2
    assert msgs[0].content == first
    assert msgs[1].content == second


PY_SIMPLE = py_traceback(
    [
        py_frame("/srv/app/run.py", 7, "<module>", "start()"),
        py_frame("/srv/app/run.py", 3, "start", "raise TimeoutError"),
    ],
    "TimeoutError",
)

PY_SECOND = py_traceback(
    [py_frame("/srv/app/run.py", 9, "<module>", "raise ValueError('bad input') from err")],
    "ValueError: bad input",
)

PY_THIRD = py_traceback(
    [py_frame("/srv/app/run.py", 11, "<module>", "raise TimeoutError")],
    "TimeoutError",
)

PY_CAUSE = chained(PY_SIMPLE, CAUSE_SEPARATOR, PY_SECOND)
PY_DURING = chained(PY_SIMPLE, CAUSE_SEPARATOR, PY_SECOND, DURING_SEPARATOR, PY_THIRD)

PY_LOGGING = "2021-05-01 10:20:30,100 ERROR:__main__:" + py_traceback(
    [
        py_frame("<stdin>", 2, "<module>"),
        py_frame("<stdin>", 4, "load_config"),
        py_frame("<stdin>", 6, "read_file"),
    ],
    "RuntimeError: configuration is broken",
)

_WEB_FRAMES = [
    py_frame(f"/opt/venv/lib/webapp/layer{n}.py", 20 + n, f"step_{n}", f"return step_{n + 1}(request)")
    for n in range(8)
]

PY_WEB = "\n".join(
    [
        "2021-05-01 10:20:30,100 ERROR [webapp.request:41] worker 7 Internal Server Error: /orders",
        chained(
            py_traceback(
                _WEB_FRAMES[:4],
                "dbdriver.errors.OperationalError: (2006, 'server has gone away')",
            ),
            CAUSE_SEPARATOR,
            py_traceback(
                _WEB_FRAMES[4:],
                "webapp.db.OperationalError: (2006, 'server has gone away')",
            ),
        ),
    ]
)


@pytest.mark.parametrize("data", [PY_SIMPLE, PY_CAUSE, PY_DURING, PY_LOGGING])
def test_python_traceback_is_one_message(data):
    msgs = write_by_line(data)
    assert len(msgs) == 1
    assert msgs[0].content == data


def test_two_python_tracebacks():
    data = PY_SIMPLE + "\n" + PY_SIMPLE
    msgs = write_by_line(data)
    assert len(msgs) == 2
    assert msgs[0].content + "\n" + msgs[1].content == data


def test_python_traceback_after_timestamped_line_keeps_first_timestamp():
    ts = datetime.fromtimestamp(100500, tz=timezone.utc)
    msgs = write_by_line(PY_WEB, ts=ts)
    assert len(msgs) == 1
    assert msgs[0].content == PY_WEB
    assert msgs[0].timestamp == ts
    assert msgs[0].level == Level.ERROR


JAVA_SIMPLE = "\n".join(
    [
        'Exception in thread "worker" java.lang.IllegalStateException',
        *java_frames("jobs", 3),
        "Caused by: java.lang.IndexOutOfBoundsException: Index 9 out of bounds for length 9",
        *java_frames("store", 2, start=40),
        "\t... 3 more",
    ]
)

JAVA_SERVLET = "\n".join(
    [
        "ERROR [event-loop-2] 2022-11-03 16:05:12,480 javax.servlet.ServletException: request failed",
        *java_frames("web", 12),
        "Caused by: org.sample.web.RequestException",
        *java_frames("handler", 5, start=100),
        "\t... 12 more",
        "Caused by: org.sample.db.ConstraintException: could not insert: [org.sample.db.Row]",
        *java_frames("db", 15, start=200),
        "\tat org.sample.db.RowService.save(RowService.java:59) <-- relevant call",
        "\t... 20 more",
        "Caused by: java.sql.SQLException: duplicate value(s) for column(s) NAME in statement [...]",
        *java_frames("sql", 3, start=300),
        "\t... 35 more",
    ]
)


@pytest.mark.parametrize("data", [JAVA_SIMPLE, JAVA_SERVLET])
def test_java_stack_trace_is_one_message(data):
    msgs = write_by_line(data)
    assert len(msgs) == 1
    assert msgs[0].content == data


def test_two_java_stack_traces():
    data = JAVA_SIMPLE + "\n" + JAVA_SIMPLE
    msgs = write_by_line(data)
    assert len(msgs) == 2
    assert msgs[0].content + "\n" + msgs[1].content == data


JS_NEST = "\n".join(
    [
        "ForbiddenException [Error]: session expired",
        *js_frames("Guard", 5),
        "    at /srv/web/lib/router.js:9:23 {",
        "  response: { statusCode: 403, message: 'session expired', error: 'Forbidden' },",
    ]
)

JS_ACCESS_LOG = "\n".join(
    [
        "Error: Invalid key length",
        *js_frames("Cipher", 6),
        '::ffff:192.0.2.7 - - [02/Mar/2024:14:20:05 +0000] "POST /api/login HTTP/1.1" 500 47 "-" "curl/8.0"',
    ]
)

JS_GRPC = "\n".join(
    [
        "Error: 14 UNAVAILABLE: connection reset",
        *js_frames("Status", 4),
        "for call at",
        *js_frames("Client", 6),
        "    at new Promise (<anonymous>) {",
        "  code: 14,",
        "  details: 'connection reset',",
        "  metadata: Metadata { entries: {} }",
        "}",
    ]
)


@pytest.mark.parametrize("data", [JS_NEST, JS_GRPC])
def test_js_stack_trace_is_one_message(data):
    msgs = write_by_line(data)
    assert len(msgs) == 1
    assert msgs[0].content == data


def test_js_stack_trace_followed_by_access_log():
    msgs = write_by_line(JS_ACCESS_LOG)
    assert len(msgs) == 2
    assert msgs[0].content + "\n" + msgs[1].content == JS_ACCESS_LOG
    assert msgs[1].content.startswith("::ffff:192.0.2.7")


def test_empty_input_gives_no_messages():
    assert write_by_line("") == []


def test_limit_with_empty_lines():
    data = "W0301 08:15:42.123456 bar\n" + "bar\n\n\n" * 20
    assert len(data) == 146
    msgs = write_by_line(data, limit=100)
    assert len(msgs) == 1
    assert len(msgs[0].content) == 100
    assert msgs[0].level == Level.WARNING


def test_limit_single_long_line():
    data = "W0301 08:15:42.123456" + " bar" * 25
    assert len(data) == 121
    msgs = write_by_line(data, limit=100)
    assert len(msgs) == 1
    assert len(msgs[0].content) == 100


def test_limit_cuts_at_character_boundary():
    data = "W0301 08:15:42.123456" + " €" * 25
    assert len(data.encode("utf-8")) == 121
    msgs = write_by_line(data, limit=100)
    assert len(msgs) == 1
    raw = msgs[0].content.encode("utf-8")
    assert len(raw) == 97
    assert raw.decode("utf-8") == msgs[0].content


def test_entry_level_used_when_guess_fails():
    with MultilineCollector(timeout=60) as collector:
        collector.add(LogEntry(EPOCH, "something happened\n", Level.ERROR))
    msgs = drain(collector.messages)
    assert msgs == [Message(EPOCH, "something happened", Level.ERROR)]


def test_guessed_level_wins_over_entry_level():
    with MultilineCollector(timeout=60) as collector:
        collector.add(LogEntry(EPOCH, "WARN disk almost full", Level.ERROR))
    msgs = drain(collector.messages)
    assert [m.level for m in msgs] == [Level.WARNING]


def test_invalid_text_is_ignored():
    with MultilineCollector(timeout=60) as collector:
        collector.add(LogEntry(EPOCH, "bad \ud800 line"))
        collector.add(LogEntry(EPOCH, "good line"))
    msgs = drain(collector.messages)
    assert [m.content for m in msgs] == ["good line"]


def test_leading_empty_lines_are_dropped():
    msgs = write_by_line("\n\nhello")
    assert [m.content for m in msgs] == ["hello"]


def test_flush_after_timeout_without_close():
    collector = MultilineCollector(timeout=0.02)
    try:
        collector.add(LogEntry(EPOCH, "first line"))
        collector.add(LogEntry(EPOCH, "  continued"))
        msg = collector.messages.get(timeout=2)
        assert msg.content == "first line\n  continued"
        assert msg.timestamp == EPOCH
    finally:
        collector.close()
    assert collector.messages.get_nowait() is None


def test_add_after_close_is_ignored():
    collector = MultilineCollector(timeout=60)
    collector.close()
    collector.add(LogEntry(EPOCH, "late line"))
    collector.close()
    assert drain(collector.messages) == []
    with pytest.raises(queue.Empty):
        collector.messages.get_nowait()


def test_non_positive_timeout_rejected():
    with pytest.raises(ValueError):
        MultilineCollector(timeout=0)