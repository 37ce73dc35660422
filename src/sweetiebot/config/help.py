"""Help text shown by ``!getconfig <Category>`` for each option."""

from typing import Optional

# Shown in place of help text for options that have none
HELP_PLACEHOLDER = "\u200b"

CONFIG_HELP: dict[str, dict[str, str]] = {
    "basic": {
        "ignoreinvalidcommands": "If true, the bot won't display an error if a nonsensical command is used. This helps reduce confusion with other bots that also use the `!` prefix.",
        "importable": "If true, the collections on this server will be importable into another server.",
        "modrole": "This is intended to point at a moderator role shared by all admins and moderators of the server for notification purposes.",
        "modchannel": "This should point at the hidden moderator channel, or whatever channel moderates want to be notified on.",
        "freechannels": "This is a list of all channels that are exempt from rate limiting. Usually set to the dedicated `#botabuse` channel in a server.",
        "botchannel": "This allows you to designate a particular channel to point users if they are trying to run too many commands at once. Usually this channel will also be included in `basic.freechannels`",
        "aliases": "Can be used to redirect commands, such as making `!listgroup` call the `!listgroups` command. Useful for making shortcuts.\n\nExample: `!setconfig basic.aliases kawaii \"pick cute\"` sets an alias mapping `!kawaii arg1...` to `!pick cute arg1...`, preserving all arguments that are passed to the alias.",
        "listentobots": "If true, processes messages from other bots and allows them to run commands. Bots can never trigger anti-spam. Defaults to false.",
        "commandprefix": "Determines the SINGLE ASCII CHARACTER prefix used to denote bot commands. You can't set it to an emoji or any weird foreign character. The default is `!`. If this is set to an invalid value, it defaults to `!`.",
        "silencerole": "This should be a role with no permissions, so the bot can quarantine potential spammers without banning them.",
    },
    "modules": {
        "commandroles": "A map of which roles are allowed to run which command. If no mapping exists, everyone can run the command.",
        "commandchannels": "A map of which channels commands are allowed to run on. No entry means a command can be run anywhere. If \"!\" is included as a channel, it switches from a whitelist to a blacklist, enabling you to exclude certain channels instead of allow certain channels.",
        "commandlimits": "A map of timeouts for commands. A value of 30 means the command can't be used more than once every 30 seconds.",
        "commanddisabled": "A list of disabled commands.",
        "commandperduration": "Maximum number of commands that can be run within `commandmaxduration` seconds. Default: 3",
        "commandmaxduration": "Default: 15. This means that by default, at most 3 commands can be run every 15 seconds.",
        "disabled": "A list of disabled modules.",
        "channels": "A mapping of what channels a given module can operate on. If no mapping is given, a module operates on all channels. If \"!\" is included as a channel, it switches from a whitelist to a blacklist, enabling you to exclude certain channels instead of allow certain channels.",
    },
    "spam": {
        "imagepressure": "Additional pressure generated by each image, link or attachment in a message. Defaults to (MaxPressure - BasePressure) / 6, instantly silencing anyone posting 6 or more links at once.",
        "repeatpressure": "Additional pressure generated by a message that is identical to the previous message sent (ignores case). Defaults to BasePressure, effectively doubling the pressure penalty for repeated messages.",
        "pingpressure": "Additional pressure generated by each unique ping in a message. Defaults to (MaxPressure - BasePressure) / 20, instantly silencing anyone pinging 20 or more people at once.",
        "lengthpressure": "Additional pressure generated by each individual character in the message. Discord allows messages up to 2000 characters in length. Defaults to (MaxPressure - BasePressure) / 8000, silencing anyone posting 3 huge messages at the same time.",
        "linepressure": "Additional pressure generated by each newline in the message. Defaults to (MaxPressure - BasePressure) / 70, silencing anyone posting more than 70 newlines in a single message",
        "basepressure": "The base pressure generated by sending a message, regardless of length or content. Defaults to 10",
        "maxpressure": "The maximum pressure allowed. If a user's pressure exceeds this amount, they will be silenced. Defaults to 60, which is intended to ban after a maximum of 6 short messages sent in rapid succession.",
        "maxchannelpressure": "Per-channel pressure override. If a channel's pressure is specified in this map, it will override the global maxpressure setting.",
        "pressuredecay": "The number of seconds it takes for a user to lose Spam.BasePressure from their pressure amount. Defaults to 2.5, so after sending 3 messages, it will take 7.5 seconds for their pressure to return to 0.",
        "maxremovelookback": "Number of seconds back the bot should delete messages of a silenced user on the channel they spammed on. If set to 0, the bot will only delete the message that caused the user to be silenced. If less than 0, the bot won't delete any messages.",
        "ignorerole": "If set, the bot will exclude anyone with this role from spam detection. Use with caution.",
        "raidtime": "In order to trigger a raid alarm, at least `spam.raidsize` people must join the chat within this many seconds of each other.",
        "raidsize": "Specifies how many people must have joined the server within the `spam.raidtime` period to qualify as a raid.",
        "autosilence": "Gets the current autosilence state. Use the `!autosilence` command to set this.",
        "lockdownduration": "Determines how long the server's verification mode will temporarily be increased to tableflip levels after a raid is detected. If set to 0, disables lockdown entirely.",
    },
    "bucket": {
        "maxitems": "Determines the maximum number of items that can be carried in the bucket. If set to 0, the bucket is disabled.",
        "maxitemlength": "Determines the maximum length of a string that can be added to the bucket.",
        "maxfighthp": "Maximum HP of the randomly generated enemy for the `!fight` command.",
        "maxfightdamage": "Maximum amount of damage a randomly generated weapon can deal for the `!fight` command.",
        "items": "List of items in the bucket.",
    },
    "markov": {
        "maxpmlines": "This is the maximum number of lines a response can be before its automatically sent as a PM to avoid cluttering the chat. Default: 5",
        "maxlines": "Maximum number of lines the `!episodequote` command can be given.",
        "defaultlines": "Number of lines for the markov chain to spawn when not given a line count.",
        "usemembernames": "Use member names instead of random pony names.",
    },
    "users": {
        "timezonelocation": "Sets the timezone location of the server itself. When no user timezone is available, the bot will use this.",
        "welcomechannel": "If set to a channel ID, the bot will treat this channel as a \"quarantine zone\" for silenced members. If autosilence is enabled, new users will be sent to this channel.",
        "welcomemessage": "If autosilence is enabled, this message will be sent to a new user upon joining.",
        "silencemessage": "This message will be sent to users that have been silenced by the `!silence` command.",
        "roles": "A list of all user-assignable roles. Manage it via !addrole and !removerole",
        "notifychannel": "If set to a channel ID other than zero, sends a message to that channel whenever a new user joins the server.",
        "trackuserleft": "If true, tracks users that leave the server if notifychannel is set.",
    },
    "filter": {
        "filters": "A collection of word lists for each filter. These are combined into a single regex of the form `(word1|word2|etc...)`, depending on the filter template.",
        "channels": "A collection of channel exclusions for each filter.",
        "responses": "The response message sent by each filter when triggered.",
        "templates": "The template used to construct the regex. `%%` is replaced with `(word1|word2|etc...)` using the filter's word list. Example: `\\[\\]\\(\\/r?%%[-) \"]` is transformed into `\\[\\]\\(\\/r?(word1|word2)[-) \"]`",
    },
    "bored": {
        "cooldown": "The bored cooldown timer, in seconds. This is the length of time a channel must be inactive before a bored message is posted.",
        "commands": "This determines what commands will be run when nothing has been said in a channel for a while. One command will be chosen from this list at random.\n\nExample: `!setconfig bored.commands !drop \"!pick bored\"`",
    },
    "information": {
        "rules": "Contains a list of numbered rules. The numbers do not need to be contiguous, and can be negative.",
        "hidenegativerules": "If true, `!rules -1` will display a rule at index -1, but `!rules` will not. This is useful for joke rules or additional rules that newcomers don't need to know about.",
    },
    "log": {
        "channel": "This is the channel where log output is sent.",
        "cooldown": "The cooldown time to display an error message, in seconds, intended to prevent the bot from spamming itself. Default: 4",
    },
    "witty": {
        "responses": "Stores the replies used by the Witty module and must be configured using `!addwit` or `!removewit`",
        "cooldown": "The cooldown time for the witty module. At least this many seconds must have passed before the bot will make another witty reply.",
    },
    "scheduler": {
        "birthdayrole": "This is the role given to members on their birthday.",
    },
    "miscellaneous": {
        "maxsearchresults": "Maximum number of search results that can be requested at once.",
    },
    "status": {
        "cooldown": "Number of seconds the bot waits before changing its status to a string picked randomly from the `status` collection.",
        "lines": "List of possible status messages that the bot can have.",
    },
    "quote": {
        "quotes": "This is a map of quotes, which should be managed via `!addquote` and `!removequote`.",
    },
}


def get_config_help(category: str, option: str) -> Optional[str]:
    """Look up help text for an option, ignoring case.

    Returns:
        Help text, or None if the option has no entry
    """
    return CONFIG_HELP.get(category.lower(), {}).get(option.lower())
