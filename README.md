# certbotmanager

`certbot-manager` runs certbot once for every certificate described in a
configuration file, then stays in the foreground and runs
`certbot renew --quiet` on a cron schedule until it receives SIGINT or SIGTERM.

It suits containers and small hosts where a single long-running process should
obtain certificates at start-up and keep them renewed afterwards.

## Installation

```
pip install .
```

Python 3.11 or later is required; there are no third-party dependencies.
certbot itself must be installed separately, together with any DNS plugins
you intend to use (`certbot-dns-cloudflare`, `certbot-dns-duckdns`).

## Running

```
certbot-manager --config /app/config.toml
```

| Option | Default | Meaning |
| --- | --- | --- |
| `-c`, `--config` | `./config.toml` | Path to the configuration file (`.toml` or `.json`) |
| `--certbot-path` | `certbot` | certbot executable, looked up on `PATH` |
| `--log-level` | `info` | `trace`, `debug`, `info`, `warn`, `error`, `fatal`, `panic` |
| `-h`, `--help` | | Show usage and exit |

On start-up the program:

1. loads the configuration file, which must exist, and checks that
   `globals.renewal_cron` is set;
2. checks that the certbot executable can be found and has its
   user-execute bit set;
3. exits with status 0 if no `[[certificate]]` blocks are configured;
4. runs certbot once per certificate; if building the arguments or running
   certbot fails for any of them, it exits with status 1 and does not start
   the scheduler;
5. schedules `certbot renew --quiet` with the configured cron expression and
   waits for SIGINT or SIGTERM, then lets a running renewal finish before it
   exits with status 0.

A renewal run that is due while the previous one is still going is skipped.

Log lines go to standard error in the form
`2024-01-02 03:04:05.00 [INFO] message`. An unknown `--log-level` prints a
warning and falls back to `info`. certbot's standard output is logged at
`debug`; its standard error is logged when a run fails.

## Configuration

```toml
[globals]
renewal_cron = "0 0 3 * * *"
email = "admin@example.com"
authenticator = "webroot"
webroot_path = "/var/www/html"
staging = true
no_eff_email = true
cmd = "certonly"

[[certificate]]
domains = ["example.com", "www.example.com"]

[[certificate]]
domains = ["api.example.com"]
authenticator = "dns-cloudflare"
cloudflare_credentials_path = "/secrets/cloudflare.ini"
dns_propagation_seconds = 30
key_type = "ecdsa"

[[certificate]]
domains = ["home.example.com"]
authenticator = "dns-duckdns"
duckdns_token = "token"
dns_propagation_seconds = 60
initial_force_renewal = true
```

Every key except `renewal_cron` and `domains` may be given in `[globals]` or
in a `[[certificate]]` block; a value in the certificate block wins.

| Key | Effect |
| --- | --- |
| `cmd` | `certonly` (default) or `run` |
| `email` | Required; passed as `--email` |
| `staging` | Adds `--staging` when true (default true) |
| `no_eff_email` | Adds `--no-eff-email` when true (default true) |
| `key_type` | Passed as `--key-type` when set |
| `initial_force_renewal` | `--force-renewal` when true, otherwise `--keep-until-expiring` |
| `args` | Passed on as one extra argument, unsplit (read from certificate blocks only) |
| `authenticator` | Required: `webroot`, `dns-cloudflare` or `dns-duckdns` (case-insensitive) |
| `webroot_path` | Required for `webroot` |
| `cloudflare_credentials_path` | Required for `dns-cloudflare` |
| `duckdns_token` | Required for `dns-duckdns` |
| `dns_propagation_seconds` | Required for DNS authenticators; passed on when greater than 0 |

`--agree-tos` and `--non-interactive` are always passed. The domains are
appended as `-d <domain>` in the order given.

Set `staging = false` once the staging runs succeed, to obtain trusted
certificates.

### Renewal schedule

`renewal_cron` takes six fields: second, minute, hour, day of month, month,
day of week. Fields accept `*`, `?`, lists, ranges, steps and month or
weekday names (`jan`, `mon`). Also accepted are `@yearly`, `@annually`,
`@monthly`, `@weekly`, `@daily`, `@midnight`, `@hourly`, `@every <duration>`
(for example `@every 12h`, with a minimum of one second), and a leading
`TZ=<zone>` or `CRON_TZ=<zone>`.

### Environment variables

Values in `[globals]` can be overridden with non-empty variables named
`CERTBOT_MANAGER_GLOBALS_<KEY>`, for example:

```
CERTBOT_MANAGER_GLOBALS_EMAIL=ops@example.com
CERTBOT_MANAGER_GLOBALS_RENEWAL_CRON="0 30 2 * * *"
CERTBOT_MANAGER_GLOBALS_STAGING=false
```

The certbot path and log level are taken, in order of precedence, from the
command-line option, `CERTBOT_MANAGER_CERTBOTPATH` / `CERTBOT_MANAGER_LOGLEVEL`,
top-level `certbotpath` / `loglevel` keys in the file, and the defaults.

Certificate blocks can only be configured in the file.

## Library use

The argument building is usable on its own:

```python
from certbotmanager.config import Certificate, Globals
from certbotmanager.builder import ArgsBuilder

globals_ = Globals(renewal_cron="0 0 3 * * *", email="admin@example.com",
                   authenticator="webroot", webroot_path="/var/www/html")
cert = Certificate(domains=["example.com"])
print(ArgsBuilder(cert, globals_).build())
```

`ArgsBuilder.build` raises `certbotmanager.builder.BuildError` when the
configuration is incomplete. Cron expressions can be parsed with
`certbotmanager.cronexpr.parse`, whose result has a `next(after)` method.

## What it does not do

It does not install certbot or its plugins, does not reload web servers after
a renewal, and does not watch the configuration file for changes: edits take
effect on the next start.

## Tests

```
pip install .[test]
pytest
```