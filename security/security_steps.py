"""Security hardening steps."""

from __future__ import annotations

from logging import DEBUG, getLogger

from lib.config import ADMIN_GROUP, SSH_LOGIN_GROUP, HardenConfig
from lib.errors import StepError
from lib.logging_utils import log_subprocess_result
from lib.system_utils import run, is_service_active, write_file

SSHD_CONFIG_FILE = "/etc/ssh/sshd_config.d/50-security-bootstrap.conf"
FAIL2BAN_JAIL_FILE = "/etc/fail2ban/jail.d/sshd.local"
AUTO_UPGRADES_FILE = "/etc/apt/apt.conf.d/20auto-upgrades"
UNATTENDED_POLICY_FILE = "/etc/apt/apt.conf.d/51unattended-upgrades-custom"
SYSCTL_FILE = "/etc/sysctl.d/99-vps-security.conf"

MANAGED_MARKER = "# Managed by vps_harden (harden_vps.py); overwritten on every run"

FAIL2BAN_MAX_RETRY = 5
FAIL2BAN_FIND_TIME = 600
FAIL2BAN_BAN_TIME = 3600
AUTO_REBOOT_TIME = "03:45"

KERNEL_PARAMETERS = [
    ("net.ipv4.ip_forward", "0"),
    ("net.ipv4.conf.all.accept_redirects", "0"),
    ("net.ipv4.conf.all.secure_redirects", "0"),
    ("net.ipv4.conf.all.accept_source_route", "0"),
    ("net.ipv4.conf.all.log_martians", "1"),
    ("net.ipv4.conf.default.accept_redirects", "0"),
    ("net.ipv4.conf.default.accept_source_route", "0"),
    ("net.ipv6.conf.all.accept_redirects", "0"),
    ("net.ipv6.conf.default.accept_redirects", "0"),
    ("net.ipv6.conf.all.accept_source_route", "0"),
    ("net.ipv6.conf.default.accept_source_route", "0"),
    ("net.ipv6.conf.all.disable_ipv6", "0"),
    ("kernel.kptr_restrict", "1"),
    ("kernel.dmesg_restrict", "1"),
]

logger = getLogger("vps_harden")


def render_sshd_config(config: HardenConfig) -> str:
    settings = [
        ("Port", str(config.ssh_port)),
        ("Protocol", "2"),
        ("PermitRootLogin", "no"),
        ("PasswordAuthentication", "no"),
        ("ChallengeResponseAuthentication", "no"),
        ("KbdInteractiveAuthentication", "no"),
        ("PubkeyAuthentication", "yes"),
        ("AuthenticationMethods", "publickey"),
        ("X11Forwarding", "no"),
        ("AllowGroups", f"{SSH_LOGIN_GROUP} {ADMIN_GROUP}"),
        ("ClientAliveInterval", "300"),
        ("ClientAliveCountMax", "2"),
        ("LoginGraceTime", "30"),
        ("MaxAuthTries", "3"),
        ("AuthorizedKeysFile", ".ssh/authorized_keys"),
    ]
    lines = [MANAGED_MARKER]
    lines.extend(f"{key} {value}" for key, value in settings)
    return "\n".join(lines) + "\n"


def harden_ssh(config: HardenConfig) -> None:
    logger.info(f"Applying SSH hardening and switching to port {config.ssh_port}.")
    write_file(SSHD_CONFIG_FILE, render_sshd_config(config), mode=0o644)

    try:
        # sshd -t refuses to run without its privilege separation directory
        run("mkdir -p -m 0755 /run/sshd")
        run("sshd -t")
        # Socket-activated releases bind the port in ssh.socket, not sshd
        if is_service_active("ssh.socket"):
            run("systemctl daemon-reload")
            run("systemctl restart ssh.socket")
        run("systemctl restart ssh")
    except StepError:
        logger.error(
            f"  ✗ sshd did not accept the new configuration in {SSHD_CONFIG_FILE}. "
            "Keep your current session open: new SSH logins may be refused."
        )
        raise

    logger.info(f"  ✓ SSH hardened (port {config.ssh_port}, key-only auth, restricted to {SSH_LOGIN_GROUP}/{ADMIN_GROUP})")


def configure_firewall(config: HardenConfig) -> None:
    logger.info("Configuring UFW firewall...")
    for cmd in ("ufw --force disable", "ufw --force reset"):
        result = run(cmd, check=False, capture_output=True)
        log_subprocess_result(logger, cmd, result, success_level=DEBUG, failure_level=DEBUG)
    run("ufw default deny incoming")
    run("ufw default allow outgoing")
    run(f"ufw limit {config.ssh_port}/tcp")
    if config.allow_web_traffic:
        run("ufw allow 80/tcp")
        run("ufw allow 443/tcp")
    run("ufw logging medium")
    run("ufw --force enable")

    if config.allow_web_traffic:
        logger.info(f"  ✓ Firewall configured (SSH {config.ssh_port} rate-limited, HTTP and HTTPS allowed)")
    else:
        logger.info(f"  ✓ Firewall configured (SSH {config.ssh_port} rate-limited only)")


def render_fail2ban_jail(config: HardenConfig) -> str:
    return f"""[sshd]
enabled = true
port = {config.ssh_port}
filter = sshd
action = %(action_)s
backend = systemd
maxretry = {FAIL2BAN_MAX_RETRY}
findtime = {FAIL2BAN_FIND_TIME}
bantime = {FAIL2BAN_BAN_TIME}
ignoreip = 127.0.0.1/8 ::1
"""


def configure_fail2ban(config: HardenConfig) -> None:
    logger.info("Configuring Fail2Ban for SSH protection.")
    write_file(FAIL2BAN_JAIL_FILE, render_fail2ban_jail(config))

    run("systemctl enable --now fail2ban")
    run("systemctl restart fail2ban")

    logger.info(f"  ✓ fail2ban configured ({FAIL2BAN_MAX_RETRY} failed attempts in {FAIL2BAN_FIND_TIME}s = {FAIL2BAN_BAN_TIME}s ban)")


def configure_auto_updates(config: HardenConfig) -> None:
    logger.info("Enabling unattended security updates.")
    auto_upgrades = """APT::Periodic::Update-Package-Lists "1";
APT::Periodic::Download-Upgradeable-Packages "1";
APT::Periodic::AutocleanInterval "7";
APT::Periodic::Unattended-Upgrade "1";
APT::Periodic::Verbose "1";
"""
    write_file(AUTO_UPGRADES_FILE, auto_upgrades)

    # Reboots only happen when an installed update leaves /var/run/reboot-required
    reboot_policy = f"""Unattended-Upgrade::Automatic-Reboot "true";
Unattended-Upgrade::Automatic-Reboot-Time "{AUTO_REBOOT_TIME}";
Unattended-Upgrade::Remove-Unused-Dependencies "true";
"""
    write_file(UNATTENDED_POLICY_FILE, reboot_policy)

    run("systemctl enable --now unattended-upgrades")

    logger.info(f"  ✓ Automatic security updates enabled (reboot at {AUTO_REBOOT_TIME} when required)")


def render_sysctl_config() -> str:
    return "".join(f"{key} = {value}\n" for key, value in KERNEL_PARAMETERS)


def harden_kernel(config: HardenConfig) -> None:
    logger.info("Applying lightweight kernel network hardening.")
    write_file(SYSCTL_FILE, render_sysctl_config())
    run(f"sysctl -q -p {SYSCTL_FILE}")

    logger.info("  ✓ Kernel hardened (no forwarding or redirects, martians logged, kernel pointers restricted)")
