# markethub

Pieces of a futures market data hub: a timer manager, a process that restarts
itself at fixed times of day, alarm mail for error lines, a table of adaptor
status, conversion of CTP depth updates into tick records, and a sink that
appends ticks to CSV files.

## Installing

```
pip install .
```

With the test suite:

```
pip install ".[test]"
pytest
```

## The `markethub` command

```
markethub [CONFIG] [--Restart]
```

`CONFIG` defaults to `MarketHub.ini` in the working directory. The command
reads two sections:

```
[Adaptors]
CTP
FileSysDB

[Restart]
08:30:00
20:30:00
```

Names under `[Adaptors]` are logged as configured adaptors. Entries under
`[Restart]` are times of day in `HH:MM:SS` form; entries of any other length
are ignored. Once a second the command checks the wall clock; when it passes a
restart time, it starts a new copy of itself with `--Restart` and exits. A copy
started with `--Restart` first waits until the previous one has released its
restart lock. If the configuration cannot be read, `Could not load config
file!` is printed to standard error and the command runs with no restart
times until interrupted.

## Modules

### `markethub.timers`

`TimerManager(handler=None)` runs one-shot and periodic timers on one
background thread and calls `handler(timer_id, context)` with a
`TimerContext`. `register_timer(delay_ms, period_ms=0, context=None)` returns
the timer id (ids start at 1; a period of 0 means one shot; negative values
raise `ValueError`). `destroy(timer_id)` and `exists(timer_id)` manage timers;
`set_handler` replaces the callback; `close()` or a `with` block stops the
worker.

### `markethub.restart`

`RestartManager(app_path=None, lock_dir=None)` uses a lock file, named from
`mutex_name(app_path)` (backslashes turned into dashes), in place of a named
system mutex.

- `activate_restart()` takes the lock and starts a new process with the
  `--Restart` switch; it returns `False` if another restart already held the
  lock or the process could not be started.
- `wait_for_previous_process_finish()` blocks until the lock is free;
  `was_restarted()` then tells whether it had to wait.
- `finish_restart()` releases the lock held by `activate_restart`.
- `is_restart_start(argv=None)` checks the command line for `--Restart`.

### `markethub.scheduler`

`parse_clock_time("HH:MM:SS")` gives seconds of day (or `None` for text that is
not eight characters), `seconds_of_day(moment=None)` does the same for a
`datetime`, `load_config(path)` returns a `HubConfig` with `adaptors` and
`restart_times` (raising `FileNotFoundError` if the file cannot be read), and
`RestartSchedule(restart_times).crossed(previous, current)` tells whether a
restart time lies after `previous` and at or before `current`. `main(argv=None)`
is the `markethub` command.

### `markethub.adaptormodel`

`AdaptorModel` is a four-column table (ID, Type, Name, Status) of
`AdaptorStatus` rows, one per adaptor id in order of first report.
`update_adaptor_status(status)` inserts or replaces a row and returns its row
number, calling each callable in `listeners` with `(row, row)`. `data(row,
column, role)` returns the cell text (`Input`/`Output`, `Load`/`Init`/
`Running`/`Stop`, or `Unknown`), `header_data(section, orientation, role)`
the header labels or alignment, and `row_count()`, `column_count()` and
`clear()` do what they say.

### `markethub.mailer`

`Mailer(decrypt=None, clock=None, transport=None)` reads the `[Mail]` section
with `read_config(path)`: `Enable`, `Sender`, `Receiver`, `Password` (passed
through `decrypt`), `Server`, `Port` and `SilentTime`. `SilentTime` holds
`HH:MM:SS-HH:MM:SS` periods separated by `;` or `,`, parsed by
`parse_silent_times` into `SilentPeriod` values. `send_mail(line)` queues a
line unless mail is disabled, the line is empty or the time falls in a silent
period; a background thread sends one queued line every five seconds through
`send_mail_out`, by SMTP over SSL unless another `transport` is given.
`compose(body, now)` builds the subject and text. `stop()` ends the worker.

### `markethub.monitor`

`Monitor(model=None, mailer=None, schedule=None, restarter=None)` keeps the
formatted log `lines` and the `AdaptorModel`. `on_message` accepts a
`LogRecord` (formatted by `format_log_record` as
`[YYYY/MM/DD HH:MM:SS.mmm][L] text`; `ERROR` and `FATAL` lines go to
`mailer.send_mail`) or an `AdaptorStatus`. `tick(now=None)` checks the restart
schedule and, after a successful `restarter.activate_restart()`, sets
`exit_requested`.

### `markethub.marketdata` and `markethub.ctp`

`FutureMarketData` is the tick record; `second_count`, `secs_diff` and
`ticks_diff` do the time arithmetic. In `ctp`, `load_ctp_config(path)` reads
the `[CTP]`, `[CacheData]` and `[Filter]` sections into a `CtpConfig`;
`front_addresses`, `filter_instrument`, `subscription_list`,
`time_str_to_seconds` and `convert_date_time_str` prepare a session;
`TimestampChecker` rejects ticks whose time drifts five minutes or more from
the login clock; and `to_future_market_data(depth, instruments,
local_trading_day)` turns a `DepthMarketData` update into a `FutureMarketData`,
moving night-session ticks dated ahead back to the local trading day.

### `markethub.filesysdb`

`FileSysDb(data_path="./Data", clock=None)` queues ticks passed to
`on_market_data` and writes them once more than 200 are queued, or on
`flush()`, `on_stop()` or `close()`. Each tick goes to
`<data_path>/TICK/<exchange>/<symbol>/<instrument>/<instrument>-<tradingday>-<localdate>.csv`,
a new file starting with a header line. A tick is skipped when the file
already existed and was modified after the tick's time. `format_market_data`,
`convert_str_num` and `convert_date_time` are the formatting helpers.

## What this package does not do

- The `markethub` command does not load or run adaptors; it only logs the
  names listed under `[Adaptors]` and handles scheduled restarts.
- There is no connection to a CTP front: `markethub.ctp` prepares
  configuration and converts updates, but nothing logs in or subscribes.
- There is no window or screen; `AdaptorModel` and `Monitor` hold the data a
  display would show.
- The `markethub.disruptor` sub-package holds no modules yet.