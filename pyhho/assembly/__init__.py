from .hho_assembler import AssemblyState, HHOAssembler

__all__ = ['HHOAssembler', 'AssemblyState']
