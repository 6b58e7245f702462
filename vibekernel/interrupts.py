"""CPU exception reporting and dispatch of interrupts to registered handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

EXCEPTION_MESSAGES = (
    "Division By Zero",
    "Debug",
    "Non Maskable Interrupt",
    "Breakpoint",
    "Into Detected Overflow",
    "Out of Bounds",
    "Invalid Opcode",
    "No Coprocessor",
    "Double Fault",
    "Coprocessor Segment Overrun",
    "Bad TSS",
    "Segment Not Present",
    "Stack Fault",
    "General Protection Fault",
    "Page Fault",
    "Unknown Interrupt",
    "Coprocessor Fault",
    "Alignment Check",
    "Machine Check",
) + ("Reserved",) * 13

EXCEPTION_COUNT = 32
PAGE_FAULT = 14
IRQ_BASE = 32
SLAVE_IRQ_BASE = 40
HANDLER_COUNT = 256

PIC_MASTER_COMMAND = 0x20
PIC_SLAVE_COMMAND = 0xA0
PIC_EOI = 0x20

# Remaps the PICs to vectors 0x20 and 0x28 and leaves only IRQ1 unmasked.
PIC_REMAP_SEQUENCE = (
    (0x20, 0x11), (0xA0, 0x11),
    (0x21, 0x20), (0xA1, 0x28),
    (0x21, 0x04), (0xA1, 0x02),
    (0x21, 0x01), (0xA1, 0x01),
    (0x21, 0xFD), (0xA1, 0xFF),
)

Output = Callable[[str], object]
PortOut = Callable[[int, int], object]


@dataclass
class Registers:
    """The register state saved when an interrupt is taken."""

    ds: int = 0
    edi: int = 0
    esi: int = 0
    ebp: int = 0
    esp: int = 0
    ebx: int = 0
    edx: int = 0
    ecx: int = 0
    eax: int = 0
    int_no: int = 0
    err_code: int = 0
    eip: int = 0
    cs: int = 0
    eflags: int = 0
    useresp: int = 0
    ss: int = 0
    cr2: int = 0


Handler = Callable[[Registers], object]


class CpuException(Exception):
    """A CPU exception that stops the machine."""

    def __init__(self, int_no: int, fault_address: Optional[int] = None) -> None:
        self.int_no = int_no
        self.message = exception_message(int_no)
        self.fault_address = fault_address
        super().__init__(self.message)


def exception_message(int_no: int) -> str:
    """The name of CPU exception ``int_no`` (0 to 31)."""
    if not 0 <= int_no < EXCEPTION_COUNT:
        raise ValueError(f"not a CPU exception: {int_no}")
    return EXCEPTION_MESSAGES[int_no]


class InterruptDispatcher:
    """Routes interrupts to handlers, reporting CPU exceptions first.

    ``screen`` and ``serial`` receive exception reports; ``port_out`` receives
    the end-of-interrupt writes to the PICs. Any of them may be left out.
    """

    def __init__(
        self,
        screen: Optional[Output] = None,
        serial: Optional[Output] = None,
        port_out: Optional[PortOut] = None,
    ) -> None:
        self._handlers: dict[int, Handler] = {}
        self._screen = screen
        self._serial = serial
        self._port_out = port_out

    def register(self, n: int, handler: Optional[Handler]) -> None:
        """Install ``handler`` for vector ``n``; None removes it."""
        if not 0 <= n < HANDLER_COUNT:
            raise ValueError(f"interrupt vector out of range: {n}")
        if handler is None:
            self._handlers.pop(n, None)
        else:
            self._handlers[n] = handler

    def handle_isr(self, regs: Registers) -> bool:
        """Handle a software interrupt or exception; True if a handler ran.

        A CPU exception is reported on serial and screen, then raised.
        """
        if regs.int_no < EXCEPTION_COUNT:
            message = exception_message(regs.int_no)
            self._write_serial(f"received internal interrupt: {message}\n")
            fault_address = None
            if regs.int_no == PAGE_FAULT:
                fault_address = regs.cr2 & 0xFFFFFFFF
                self._write_serial(f"Faulting address: 0x{fault_address:08X}\n")
            if self._screen is not None:
                self._screen(f"received interrupt: {message}\n")
            raise CpuException(regs.int_no, fault_address)
        return self._dispatch(regs)

    def handle_irq(self, regs: Registers) -> bool:
        """Acknowledge a hardware interrupt and run its handler; True if one ran."""
        if self._port_out is not None:
            if regs.int_no >= SLAVE_IRQ_BASE:
                self._port_out(PIC_SLAVE_COMMAND, PIC_EOI)
            self._port_out(PIC_MASTER_COMMAND, PIC_EOI)
        return self._dispatch(regs)

    def _write_serial(self, text: str) -> None:
        if self._serial is not None:
            self._serial(text)

    def _dispatch(self, regs: Registers) -> bool:
        handler = self._handlers.get(regs.int_no)
        if handler is None:
            return False
        handler(regs)
        return True