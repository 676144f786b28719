"""
a command-line interface to a Fedora-style repository.  The :py:func:`main` function provides
the implementation; each subcommand sends one request and writes the raw response body to
standard output.
"""
import sys, os, re, logging, traceback as tb
from argparse import ArgumentParser

from . import config
from .client import FedoraClient
from .exceptions import ConfigurationException, InvalidRequest, EncodingError, TransportError

prog = re.sub(r'\.py$', '', os.path.basename(sys.argv[0]))

class Failure(Exception):
    """
    An exception that indicates that a failure occured while executing a command.  The CLI is
    expected to exit with the exception's ``exitcode``:
      * 1:  the service responded with an error status
      * 2:  missing, misused, or invalid options or configuration
      * 3:  the service could not be reached
    """
    def __init__(self, message, exitcode=2, cause=None):
        super(Failure, self).__init__(message)
        self.exitcode = exitcode
        self.cause = cause

def define_options(progname):
    """
    return an ArgumentParser instance that is configured with options
    for the command-line interface.
    """
    description = "Send requests to a Fedora repository's REST interface and print the " \
                  "responses"
    epilog = "Connection parameters given as options override those in the config file."

    parser = ArgumentParser(progname, None, description, epilog)
    parser.add_argument('-c', '--config-file', type=str, dest='cfgfile', metavar='FILE',
                        help="a file (JSON or YAML) containing the client configuration")
    parser.add_argument('-u', '--url', type=str, dest='url', metavar='URL',
                        help="the repository's base URL (overrides service_endpoint)")
    parser.add_argument('-U', '--user', type=str, dest='user', metavar='USER',
                        help="the user to authenticate as")
    parser.add_argument('-P', '--password', type=str, dest='passwd', metavar='PASS',
                        help="the password for USER")
    parser.add_argument('-l', '--logfile', action='store', dest='logfile', type=str, metavar='FILE',
                        help="write log messages to FILE")
    parser.add_argument('-D', '--debug', action='store_true', dest='debug',
                        help="record DEBUG messages to the log")
    parser.add_argument('-q', '--quiet', action='store_true', dest='quiet',
                        help="suppress all error and warning messages to standard error")

    subparsers = parser.add_subparsers(title="commands", dest='cmd', metavar="CMD")

    p = subparsers.add_parser("find", help="search for objects")
    p.add_argument('-t', '--terms', type=str, dest='terms', metavar='PHRASE',
                   help="a phrase to search for across all fields")
    p.add_argument('-Q', '--query', type=str, dest='query', metavar='QUERY',
                   help="a field-specific query, e.g. 'pid~demo:*'")
    p.add_argument('-n', '--max-results', type=int, dest='maxresults', metavar='N',
                   help="return at most N results")
    p.add_argument('-f', '--field', action='append', dest='fields', metavar='FIELD',
                   help="include FIELD in the results (may be repeated)")
    p.add_argument('-s', '--session-token', type=str, dest='token', metavar='TOKEN',
                   help="continue a previous search")

    p = subparsers.add_parser("profile", help="print an object's profile")
    p.add_argument('pid', metavar='PID', help="the object's identifier")

    p = subparsers.add_parser("datastreams", help="list an object's datastreams")
    p.add_argument('pid', metavar='PID', help="the object's identifier")

    p = subparsers.add_parser("content", help="print a datastream's content")
    p.add_argument('pid', metavar='PID', help="the object's identifier")
    p.add_argument('dsid', metavar='DSID', help="the datastream's identifier")

    p = subparsers.add_parser("export", help="export an object")
    p.add_argument('pid', metavar='PID', help="the object's identifier")
    p.add_argument('-C', '--context', type=str, dest='context', choices="public migrate archive".split(),
                   help="the export context")

    p = subparsers.add_parser("nextpid", help="reserve new object identifiers")
    p.add_argument('-n', '--count', type=int, dest='count', metavar='N',
                   help="the number of identifiers to reserve")
    p.add_argument('-N', '--namespace', type=str, dest='namespace', metavar='NS',
                   help="the namespace to reserve identifiers in")

    p = subparsers.add_parser("ingest", help="create an object from a FOXML file")
    p.add_argument('file', metavar='FILE', help="the file containing the ingest document")
    p.add_argument('-p', '--pid', type=str, dest='pid', metavar='PID',
                   help="the identifier for the new object")
    p.add_argument('-m', '--message', type=str, dest='message', metavar='MSG',
                   help="a log message for the audit trail")

    p = subparsers.add_parser("add-ds", help="add a datastream to an object")
    p.add_argument('pid', metavar='PID', help="the object's identifier")
    p.add_argument('dsid', metavar='DSID', help="the identifier for the new datastream")
    p.add_argument('-f', '--file', type=str, dest='file', metavar='FILE',
                   help="upload the content from FILE")
    p.add_argument('-L', '--location', type=str, dest='location', metavar='URL',
                   help="have the repository retrieve the content from URL")
    p.add_argument('-t', '--mime-type', type=str, dest='mimetype', metavar='TYPE',
                   help="the content's MIME type")
    p.add_argument('-g', '--control-group', type=str, dest='group', choices="X M R E".split(),
                   help="the datastream's control group")
    p.add_argument('-m', '--message', type=str, dest='message', metavar='MSG',
                   help="a log message for the audit trail")

    p = subparsers.add_parser("purge", help="purge an object or one of its datastreams")
    p.add_argument('pid', metavar='PID', help="the object's identifier")
    p.add_argument('dsid', metavar='DSID', nargs='?', help="the datastream to purge")
    p.add_argument('-m', '--message', type=str, dest='message', metavar='MSG',
                   help="a log message for the audit trail")

    return parser

def read_config(filepath):
    """
    read the configuration from a file having the given filepath

    :except Failure:  if the contents contains syntax or format errors
    :except IOError:  if a failure occurs while opening or reading the file
    """
    try:
        return config.load_from_file(filepath)
    except ConfigurationException as ex:
        raise Failure("Config parsing error: "+str(ex), 2, ex)

def _setup_log(opts):
    level = (opts.debug and logging.DEBUG) or logging.INFO
    if not opts.quiet:
        # only warnings and errors go to the terminal unless debugging
        config.configure_log(level=(opts.debug and level) or logging.WARNING,
                             format=prog + ": %(levelname)s: %(message)s", addstderr=True)
    if opts.logfile:
        config.configure_log(opts.logfile, level)
    if not logging.getLogger().handlers:
        logging.getLogger().addHandler(logging.NullHandler())

def make_client(opts) -> FedoraClient:
    """
    create the client from the configuration file and connection options
    """
    cfg = {}
    if opts.cfgfile:
        try:
            cfg = read_config(opts.cfgfile)
        except EnvironmentError as ex:
            raise Failure("problem reading config file, {0}: {1}"
                          .format(opts.cfgfile, ex.strerror)) from ex

    override = {}
    if opts.url:
        override['service_endpoint'] = opts.url
    if opts.user:
        override['authentication'] = { 'user': opts.user, 'pass': opts.passwd or '' }
    cfg = config.merge_config(override, cfg)

    if cfg.get('logging') and opts.logfile is None:
        config.configure_log(config=cfg['logging'])

    try:
        return FedoraClient.from_config(cfg)
    except ConfigurationException as ex:
        raise Failure(str(ex), 2, ex) from ex

def execute(cli: FedoraClient, opts):
    """
    send the request selected by the subcommand and return the response
    """
    if opts.cmd == "find":
        kw = { 'terms': opts.terms, 'query': opts.query, 'max_results': opts.maxresults }
        if opts.fields:
            kw['display_fields'] = opts.fields
        if opts.token:
            return cli.resume_find_objects(opts.token, **kw)
        return cli.find_objects(**kw)
    if opts.cmd == "profile":
        return cli.get_object_profile(opts.pid)
    if opts.cmd == "datastreams":
        return cli.list_datastreams(opts.pid)
    if opts.cmd == "content":
        return cli.get_datastream_dissemination(opts.pid, opts.dsid)
    if opts.cmd == "export":
        return cli.export(opts.pid, context=opts.context)
    if opts.cmd == "nextpid":
        return cli.get_next_pid(opts.count, opts.namespace)
    if opts.cmd == "ingest":
        return cli.ingest(opts.pid, file=opts.file, log_message=opts.message)
    if opts.cmd == "add-ds":
        return cli.add_datastream(opts.pid, opts.dsid, file=opts.file, location=opts.location,
                                  mime_type=opts.mimetype, control_group=opts.group,
                                  log_message=opts.message)
    if opts.cmd == "purge":
        if opts.dsid:
            return cli.purge_datastream(opts.pid, opts.dsid, log_message=opts.message)
        return cli.purge_object(opts.pid, log_message=opts.message)
    raise Failure(f"Unrecognized command: {opts.cmd}")

def main(progname, args, out=None):
    """
    execute the command given by the command-line arguments and write the response to ``out``
    (default: standard output)
    :raises Failure:  if the command could not be completed successfully
    """
    if out is None:
        out = sys.stdout.buffer
    parser = define_options(progname)
    opts = parser.parse_args(args)
    if not opts.cmd:
        raise Failure("No command given (use -h for help)")
    _setup_log(opts)

    cli = make_client(opts)
    try:
        resp = execute(cli, opts)
    except (InvalidRequest, EncodingError) as ex:
        raise Failure(str(ex), 2, ex) from ex
    except TransportError as ex:
        raise Failure("Unable to reach repository: "+str(ex), 3, ex) from ex
    finally:
        cli.close()

    out.write(resp.content)
    if resp.status_code >= 300 or resp.status_code < 200:
        raise Failure(f"Repository responded with {resp.status_code} {resp.reason}", 1)
    return 0

def err(msg):
    rootlog = logging.getLogger()
    if any(not isinstance(h, logging.NullHandler) for h in rootlog.handlers):
        rootlog.error(msg)
    else:
        sys.stderr.write(f"{prog}: {msg}\n")

def run():
    """
    the entry point for the ``fedorarest`` command
    """
    try:
        main(prog, sys.argv[1:])
    except Failure as ex:
        err(str(ex))
        sys.exit(ex.exitcode)
    except Exception as ex:
        # unexpected failure
        tb.print_exc()
        err(str(ex))
        sys.exit(1)
